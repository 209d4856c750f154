from __future__ import annotations

from asset_collections.schemas import Collection, CollectionAsset
from conftest import ALICE, page
from core.transfer import AssetKind


def make_collection(**fields) -> Collection:
    data = {"uuid": "c-1", "name": "favorites", "owner": "alice", "creator": "alice"}
    data.update(fields)
    return Collection(**data)


def test_collection_list_extend(client, services):
    services.collections.collection_list.return_value = ([make_collection()], page(total=1))

    response = client.get("/1.0/collections?extend=true&q=fav")

    assert response.status_code == 200
    kwargs = services.collections.collection_list.call_args.kwargs
    assert kwargs["extend"] is True
    assert kwargs["search"] == "fav"


def test_collection_list_extend_strict(client, services):
    services.collections.collection_list.return_value = ([], page())

    client.get("/1.0/collections?extend=yes")

    assert services.collections.collection_list.call_args.kwargs["extend"] is False


def test_create_collection(client, services, tx, alice_headers):
    services.collections.create_collection.return_value = make_collection()

    response = client.post("/1.0/collections", headers=alice_headers, json={"name": "favorites"})

    assert response.status_code == 200
    payload, user = services.collections.create_collection.call_args.args[1:]
    assert payload.name == "favorites"
    assert user == ALICE
    assert tx.committed


def test_create_collection_invalid_name(client, services, alice_headers):
    response = client.post("/1.0/collections", headers=alice_headers, json={"name": "50%"})

    assert response.status_code == 400
    assert response.json()["errcode"] == 3004
    assert response.json()["extra"] == ["name:50%"]


def test_update_collection_keeps_folders(client, services, alice_headers):
    seen = {}

    async def update_collection(tx, owner, name, payload, *, files_dir, user):
        seen["files"] = sorted(p.relative_to(files_dir).as_posix() for p in files_dir.rglob("*") if p.is_file())
        return make_collection()

    services.collections.update_collection.side_effect = update_collection

    response = client.patch(
        "/1.0/alice/collections/favorites",
        headers=alice_headers,
        files=[("file", ("thumbnails/logo.png", b"\x89PNG", "image/png"))],
    )

    assert response.status_code == 200
    assert seen["files"] == ["thumbnails/logo.png"]


def test_asset_list(client, services):
    services.collections.collection_assets.return_value = (
        [CollectionAsset(name="box", owner="bob", type=AssetKind.MODEL)],
        page(total=1),
    )

    response = client.get("/1.0/alice/collections/favorites/models")

    assert response.status_code == 200
    assert response.json() == [{"name": "box", "owner": "bob", "type": "model"}]
    assert services.collections.collection_assets.call_args.args[4] is AssetKind.MODEL


def test_asset_add(client, services, tx, alice_headers):
    response = client.post(
        "/1.0/alice/collections/favorites/worlds",
        headers=alice_headers,
        json={"name": "cave", "owner": "bob"},
    )

    assert response.status_code == 200
    assert response.content == b""
    asset, kind = services.collections.add_asset.call_args.args[3:5]
    assert (asset.name, asset.owner) == ("cave", "bob")
    assert kind is AssetKind.WORLD
    assert tx.committed


def test_asset_remove_from_query(client, services, alice_headers):
    response = client.delete("/1.0/alice/collections/favorites/models?o=bob&n=box", headers=alice_headers)

    assert response.status_code == 200
    asset, kind = services.collections.remove_asset.call_args.args[3:5]
    assert (asset.name, asset.owner) == ("box", "bob")
    assert kind is AssetKind.MODEL


def test_asset_remove_missing_query(client, services, alice_headers):
    response = client.delete("/1.0/alice/collections/favorites/models?o=bob", headers=alice_headers)

    assert response.status_code == 400
    assert response.json()["errcode"] == 3004
    services.collections.remove_asset.assert_not_called()


def test_unknown_asset_kind(client, services):
    response = client.get("/1.0/alice/collections/favorites/plugins")

    assert response.status_code == 400
    assert response.json()["errcode"] == 5005
