from __future__ import annotations

from conftest import ALICE, page
from core.binding import Binder
from organizations.schemas import Member, OrganizationOut, Team


def test_create_organization(client, services, tx, alice_headers):
    services.organizations.create_organization.return_value = OrganizationOut(name="Robotics Lab")

    response = client.post(
        "/1.0/organizations",
        headers=alice_headers,
        json={"name": "Robotics Lab", "email": "lab@example.com"},
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Robotics Lab"
    payload, user = services.organizations.create_organization.call_args.args[1:]
    assert payload.email == "lab@example.com"
    assert user == ALICE
    assert tx.committed


def test_create_organization_reserved_name(app, client, services, alice_headers):
    app.state.binder = Binder(owner_blacklist=frozenset({"admin"}))

    response = client.post("/1.0/organizations", headers=alice_headers, json={"name": "Admin"})

    assert response.status_code == 400
    assert response.json()["errcode"] == 3004
    assert response.json()["extra"] == ["name:Admin"]
    services.organizations.create_organization.assert_not_called()


def test_create_organization_invalid_json(client, services, alice_headers):
    response = client.post(
        "/1.0/organizations",
        headers={**alice_headers, "Content-Type": "application/json"},
        content=b"name=acme",
    )

    assert response.status_code == 400
    assert response.json()["errcode"] == 3008


def test_create_organization_requires_user(client, services):
    response = client.post("/1.0/organizations", json={"name": "acme2"})

    assert response.status_code == 401
    assert response.json()["errcode"] == 4001


def test_organization_list(client, services):
    services.organizations.organization_list.return_value = ([OrganizationOut(name="acme")], page(total=1))

    response = client.get("/1.0/organizations")

    assert response.status_code == 200
    assert response.json()[0]["name"] == "acme"
    assert response.headers["X-Total-Count"] == "1"


def test_update_requires_changes(client, services, alice_headers):
    response = client.patch("/1.0/organizations/acme", headers=alice_headers, json={})

    assert response.status_code == 400
    assert response.json()["errcode"] == 3004
    services.organizations.update_organization.assert_not_called()


def test_add_member(client, services, tx, alice_headers):
    services.organizations.add_member.return_value = Member(username="bob", name="Bob", org_role="member")

    response = client.post(
        "/1.0/organizations/acme/users", headers=alice_headers, json={"username": "bob", "role": "member"}
    )

    assert response.status_code == 200
    assert response.json()["org_role"] == "member"
    name, member = services.organizations.add_member.call_args.args[1:3]
    assert (name, member.username, member.role) == ("acme", "bob", "member")
    assert tx.committed


def test_add_member_unknown_role(client, services, alice_headers):
    response = client.post(
        "/1.0/organizations/acme/users", headers=alice_headers, json={"username": "bob", "role": "guest"}
    )

    assert response.status_code == 400
    assert response.json()["errcode"] == 3004


def test_update_team_lists(client, services, alice_headers):
    services.organizations.update_team.return_value = Team(name="pilots", visible=True, usernames=["bob"])

    response = client.patch(
        "/1.0/organizations/acme/teams/pilots",
        headers=alice_headers,
        json={"new_users": ["bob"], "rm_users": []},
    )

    assert response.status_code == 200
    assert response.json()["usernames"] == ["bob"]
    org, team, payload = services.organizations.update_team.call_args.args[1:4]
    assert (org, team) == ("acme", "pilots")
    assert payload.new_users == ["bob"]
