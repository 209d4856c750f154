from __future__ import annotations

from conftest import ALICE, make_model, page
from core.errors import ApiError, ErrorCode
from reviews.schemas import ModelReview, ReviewStatus

FILES = [("file", ("box/model.sdf", b"<sdf/>", "application/xml"))]


def make_review(**fields) -> ModelReview:
    data = {"title": "Fix inertia", "creator": "alice", "owner": "alice", "branch": "inertia"}
    data.update(fields)
    return ModelReview(**data)


def test_review_list(client, services):
    services.reviews.review_list.return_value = ([make_review(status=ReviewStatus.MERGED)], page(total=1))

    response = client.get("/1.0/models/reviews?order=asc&q=inertia")

    assert response.status_code == 200
    assert response.json()[0]["status"] == 1
    kwargs = services.reviews.review_list.call_args.kwargs
    assert (kwargs["owner"], kwargs["order"], kwargs["search"]) == (None, "asc", "inertia")
    assert kwargs["model"] is None


def test_model_review_list(client, services):
    model = make_model()
    services.models.get_model.return_value = model
    services.reviews.review_list.return_value = ([], page())

    response = client.get("/1.0/alice/models/box/reviews")

    assert response.status_code == 200
    assert services.models.get_model.call_args.args[1:3] == ("alice", "box")
    kwargs = services.reviews.review_list.call_args.kwargs
    assert kwargs["owner"] == "alice"
    assert kwargs["model"] == model


def test_model_review_list_unknown_model(client, services):
    services.models.get_model.side_effect = ApiError(ErrorCode.NAME_NOT_FOUND)

    response = client.get("/1.0/alice/models/nothing/reviews")

    assert response.status_code == 404
    assert response.json()["errcode"] == 1004
    assert response.json()["extra"] == ["nothing"]
    services.reviews.review_list.assert_not_called()


def test_review_existing_model(client, services, tx, alice_headers):
    services.models.get_model.return_value = make_model()
    services.reviews.create_review.return_value = make_review(reviewers=["bob", "carol"])

    response = client.post(
        "/1.0/alice/models/box/reviews",
        headers=alice_headers,
        data={"title": "Fix inertia", "branch": "inertia", "reviewers": ["bob", "carol"]},
    )

    assert response.status_code == 200
    payload, model, user = services.reviews.create_review.call_args.args[1:]
    assert payload.reviewers == ["bob", "carol"]
    assert model.name == "box"
    assert user == ALICE
    assert tx.committed


def test_review_requires_branch(client, services, alice_headers):
    response = client.post("/1.0/alice/models/box/reviews", headers=alice_headers, data={"title": "Fix inertia"})

    assert response.status_code == 400
    assert response.json()["errcode"] == 5006
    assert response.json()["extra"] == ["Missing branch field"]
    services.reviews.create_review.assert_not_called()


def test_review_title_without_slash(client, services, alice_headers):
    response = client.post(
        "/1.0/alice/models/box/reviews", headers=alice_headers, data={"title": "a/b", "branch": "main"}
    )

    assert response.status_code == 400
    assert response.json()["errcode"] == 3004
    assert response.json()["extra"] == ["title:a/b"]


def test_review_missing_model_is_unexpected(client, services, alice_headers):
    services.models.get_model.side_effect = ApiError(ErrorCode.NAME_NOT_FOUND)

    response = client.post(
        "/1.0/alice/models/box/reviews", headers=alice_headers, data={"title": "Fix", "branch": "main"}
    )

    assert response.status_code == 500
    assert response.json()["errcode"] == 150000


def test_review_requires_user(client, services):
    response = client.post("/1.0/alice/models/box/reviews", data={"title": "Fix", "branch": "main"})

    assert response.status_code == 401


def test_review_with_new_model(client, services, tx, alice_headers, tmp_path):
    model = make_model(location=str(tmp_path))
    services.models.create_model.return_value = model
    services.reviews.create_review.return_value = make_review()

    response = client.post(
        "/1.0/models/reviews",
        headers=alice_headers,
        data={"name": "box", "license": "1", "title": "Initial import", "branch": "main"},
        files=FILES,
    )

    assert response.status_code == 200
    assert services.models.create_model.call_args.kwargs["owner"] == "alice"
    payload, reviewed, _ = services.reviews.create_review.call_args.args[1:]
    assert (payload.title, payload.branch) == ("Initial import", "main")
    assert reviewed == model
    assert tx.committed


def test_review_with_new_model_checks_branch_first(client, services, alice_headers):
    response = client.post(
        "/1.0/models/reviews",
        headers=alice_headers,
        data={"name": "box", "license": "1", "title": "Initial import"},
        files=FILES,
    )

    assert response.status_code == 400
    assert response.json()["errcode"] == 5006
    services.models.create_model.assert_not_called()


def test_review_with_new_model_commit_failure(client, services, tx, alice_headers, tmp_path):
    location = tmp_path / "alice" / "models" / "box"
    location.mkdir(parents=True)
    services.models.create_model.return_value = make_model(location=str(location))
    services.reviews.create_review.return_value = make_review()
    tx.fail_commit = True

    response = client.post(
        "/1.0/models/reviews",
        headers=alice_headers,
        data={"name": "box", "license": "1", "title": "Initial import", "branch": "main"},
        files=FILES,
    )

    assert response.status_code == 500
    assert response.json()["errcode"] == 1000
    assert not location.exists()
