from __future__ import annotations

from conftest import make_world, page
from core.files import ZipDownload
from core.transfer import AssetKind
from worlds.schemas import ModelReference


def test_create_world_keeps_single_file(client, services, alice_headers):
    seen = {}

    async def create_world(tx, payload, *, owner, files_dir, user):
        seen["files"] = sorted(p.name for p in files_dir.iterdir())
        return make_world(name=payload.name)

    services.worlds.create_world.side_effect = create_world

    response = client.post(
        "/1.0/worlds",
        headers=alice_headers,
        data={"name": "cave", "license": "2", "tags": "subt,cave"},
        files=[("file[]", ("cave/cave.world", b"<world/>", "application/xml"))],
    )

    assert response.status_code == 200
    assert seen["files"] == ["cave.world"]


def test_world_name_too_short(client, services, alice_headers):
    response = client.post(
        "/1.0/worlds",
        headers=alice_headers,
        data={"name": "ab", "license": "1"},
        files=[("file", ("ab.world", b"<world/>", "application/xml"))],
    )

    assert response.status_code == 400
    assert response.json()["errcode"] == 3004
    services.worlds.create_world.assert_not_called()


def test_world_list(client, services):
    services.worlds.world_list.return_value = ([make_world()], page(total=1))

    response = client.get("/1.0/alice/worlds?order=desc")

    assert response.status_code == 200
    assert response.json()[0]["name"] == "cave"
    assert response.headers["X-Total-Count"] == "1"
    assert services.worlds.world_list.call_args.kwargs["owner"] == "alice"


def test_model_references(client, services):
    refs = [ModelReference(world_version=2, model_name="box", model_owner="bob", model_version=1)]
    services.worlds.model_references.return_value = (refs, page(total=1))

    response = client.get("/1.0/alice/worlds/cave/2/modelrefs")

    assert response.status_code == 200
    assert response.json() == [
        {"world_version": 2, "model_name": "box", "model_owner": "bob", "model_version": 1}
    ]
    assert services.worlds.model_references.call_args.args[2:5] == ("alice", "cave", "2")


def test_world_zip_name(client, services, tmp_path):
    archive = tmp_path / "cave.zip"
    archive.write_bytes(b"PK\x05\x06" + b"\x00" * 18)
    services.worlds.download_zip.return_value = ZipDownload(
        resource=make_world(), uuid="33333333-4444", version=2, location=str(archive)
    )

    response = client.get("/1.0/alice/worlds/cave/2/cave.zip")

    assert response.status_code == 200
    assert response.headers["Content-Disposition"] == 'attachment; filename="world-33333333-4444v2.zip"'
    assert response.headers["X-Ign-Resource-Version"] == "2"


def test_remove_world(client, services, tx, alice_headers):
    world = make_world()
    services.worlds.get_world.return_value = world

    response = client.delete("/1.0/alice/worlds/cave", headers=alice_headers)

    assert response.status_code == 200
    assert services.collections.remove_asset_from_all.call_args.args[1:] == (world, AssetKind.WORLD)
    assert tx.committed


def test_world_transfer(client, services, alice_headers):
    services.worlds.get_world.return_value = make_world()
    services.worlds.move.return_value = make_world(owner="acme")

    response = client.post("/1.0/alice/worlds/cave/transfer", headers=alice_headers, json={"destOwner": "acme"})

    assert response.status_code == 200
    assert response.json()["owner"] == "acme"


def test_world_transfer_bad_body(client, services, alice_headers):
    response = client.post(
        "/1.0/alice/worlds/cave/transfer",
        headers={**alice_headers, "Content-Type": "application/json"},
        content=b"{not json",
    )

    assert response.status_code == 400
    assert response.json()["errcode"] == 3008
