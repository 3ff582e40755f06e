from conftest import RecordingConnection
from core.notifier import KEEPALIVE, PushConnection, format_event


async def test_create_item_derives_status(client, new_item, catalogs):
    item = await new_item(stock=50, reorder_point=10)
    assert item["status"] == "Available"
    assert item["item_type"] == "Cable"
    assert item["stock_unit"] == "pcs"
    assert item["supplier"] == "Acme Components"
    assert item["stock"] == 50
    assert item["updated_at"] is not None

    low = await new_item(item_variant="Cat6", stock=5, reorder_point=10)
    assert low["status"] == "Low Stock"

    empty = await new_item(item_variant="HDMI", stock=0, reorder_point=None)
    assert empty["status"] == "Out of Stock"


async def test_create_item_with_override(new_item):
    item = await new_item(stock=0, status_override="Restocking")
    assert item["status"] == "Restocking"


async def test_create_item_takes_manual_plain_status(new_item):
    item = await new_item(stock=50, status="Phased Out")
    assert item["status"] == "Phased Out"

    stale = await new_item(item_variant="Cat6", stock=0, status="Available")
    assert stale["status"] == "Out of Stock"


async def test_create_item_missing_field_is_400(client, catalogs):
    res = await client.post("/api/inventory", json={"item_variant": "USB-C", "stock": 1})
    assert res.status_code == 400
    assert "Missing required field" in res.json()["error"]


async def test_create_item_rejects_negative_stock(client, catalogs):
    res = await client.post(
        "/api/inventory",
        json={
            "item_type_id": catalogs["cable"],
            "item_variant": "USB-C",
            "stock": -1,
            "stock_unit_id": catalogs["pcs"],
            "supplier_id": catalogs["acme"],
        },
    )
    assert res.status_code == 400
    assert "stock" in res.json()["error"]


async def test_list_and_get(client, new_item):
    a = await new_item(item_variant="USB-C 1m")
    b = await new_item(item_variant="Cat6 patch", stock=3)

    res = await client.get("/api/inventory")
    assert res.status_code == 200
    assert [i["id"] for i in res.json()] == [a["id"], b["id"]]

    res = await client.get(f"/api/inventory/{b['id']}")
    assert res.status_code == 200
    assert res.json()["item_variant"] == "Cat6 patch"


async def test_list_filters(client, new_item, catalogs):
    await new_item(item_variant="USB-C 1m", stock=50)
    low = await new_item(item_variant="Cat6 patch", stock=3)
    sensor = await new_item(item_type_id=catalogs["sensor"], item_variant="PT100", supplier_id=catalogs["globex"])

    res = await client.get("/api/inventory", params={"status": "Low Stock"})
    assert [i["id"] for i in res.json()] == [low["id"]]

    res = await client.get("/api/inventory", params={"supplier_id": catalogs["globex"]})
    assert [i["id"] for i in res.json()] == [sensor["id"]]

    res = await client.get("/api/inventory", params={"q": "sens"})
    assert [i["id"] for i in res.json()] == [sensor["id"]]

    res = await client.get("/api/inventory", params={"q": "CAT6"})
    assert [i["id"] for i in res.json()] == [low["id"]]


async def test_get_missing_item_is_404(client):
    res = await client.get("/api/inventory/999")
    assert res.status_code == 404
    assert res.json() == {"error": "Item not found"}


async def test_update_requires_fields(client, new_item):
    item = await new_item()
    res = await client.put(f"/api/inventory/{item['id']}", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "No fields to update"}


async def test_update_rejects_null_for_required_column(client, new_item):
    item = await new_item()
    res = await client.put(f"/api/inventory/{item['id']}", json={"stock": None})
    assert res.status_code == 400


async def test_update_missing_item_is_404(client, catalogs):
    res = await client.put("/api/inventory/999", json={"stock": 3})
    assert res.status_code == 404


async def test_update_recomputes_status_over_stale_client_status(client, new_item):
    item = await new_item(stock=50, reorder_point=10)
    res = await client.put(f"/api/inventory/{item['id']}", json={"stock": 2, "status": "Available"})
    assert res.status_code == 200
    assert res.json()["stock"] == 2
    assert res.json()["status"] == "Low Stock"


async def test_update_reorder_point_alone_recomputes(client, new_item):
    item = await new_item(stock=15, reorder_point=10)
    res = await client.put(f"/api/inventory/{item['id']}", json={"reorder_point": 20})
    assert res.json()["status"] == "Low Stock"

    res = await client.put(f"/api/inventory/{item['id']}", json={"reorder_point": None})
    assert res.json()["reorder_point"] is None
    assert res.json()["status"] == "Available"


async def test_update_override_skips_recomputation(client, new_item):
    item = await new_item(stock=50, reorder_point=10)
    res = await client.put(
        f"/api/inventory/{item['id']}",
        json={"stock": 0, "status_override": "Restocking"},
    )
    assert res.json()["stock"] == 0
    assert res.json()["status"] == "Restocking"


async def test_phased_out_survives_stock_changes(client, new_item):
    item = await new_item(stock=50, reorder_point=10)
    await client.put(f"/api/inventory/{item['id']}/phase-out")

    res = await client.put(f"/api/inventory/{item['id']}", json={"stock": 1})
    assert res.json()["status"] == "Phased Out"

    res = await client.put(f"/api/inventory/{item['id']}/reduce-stock", json={"reduceAmount": 1})
    assert res.json()["status"] == "Phased Out"


async def test_manual_transition_out_of_phased_out(client, new_item):
    item = await new_item(stock=50, reorder_point=10)
    await client.put(f"/api/inventory/{item['id']}/phase-out")

    res = await client.put(f"/api/inventory/{item['id']}", json={"status": "Available"})
    assert res.json()["status"] == "Available"


async def test_full_form_resubmit_with_unchanged_stock_applies_status(client, new_item):
    item = await new_item(stock=50, reorder_point=10)
    url = f"/api/inventory/{item['id']}"

    res = await client.put(url, json={"stock": 50, "reorder_point": 10, "status": "Restocking"})
    assert res.json()["status"] == "Restocking"

    await client.put(f"{url}/phase-out")
    res = await client.put(url, json={"stock": 50, "status": "Available"})
    assert res.json()["status"] == "Available"

    res = await client.put(url, json={"stock": 4, "reorder_point": 10, "status": "Restocking"})
    assert res.json()["status"] == "Low Stock"


async def test_update_plain_fields_keeps_status(client, new_item, catalogs):
    item = await new_item(stock=5, reorder_point=10)
    res = await client.put(
        f"/api/inventory/{item['id']}",
        json={"item_variant": "USB-C 2m", "supplier_id": catalogs["globex"]},
    )
    body = res.json()
    assert body["item_variant"] == "USB-C 2m"
    assert body["supplier"] == "Globex Industrial"
    assert body["status"] == "Low Stock"


async def test_reduce_stock_floors_at_zero(client, new_item):
    item = await new_item(stock=10, reorder_point=5)
    res = await client.put(f"/api/inventory/{item['id']}/reduce-stock", json={"reduceAmount": 15})
    assert res.status_code == 200
    assert res.json()["stock"] == 0
    assert res.json()["status"] == "Out of Stock"


async def test_reduce_stock_updates_status(client, new_item):
    item = await new_item(stock=12, reorder_point=10)
    res = await client.put(f"/api/inventory/{item['id']}/reduce-stock", json={"reduceAmount": 2})
    assert res.json()["stock"] == 10
    assert res.json()["status"] == "Low Stock"


async def test_reduce_stock_invalid_amount(client, new_item):
    item = await new_item()
    for body in ({"reduceAmount": 0}, {"reduceAmount": -4}, {"reduceAmount": "lots"}, {}):
        res = await client.put(f"/api/inventory/{item['id']}/reduce-stock", json=body)
        assert res.status_code == 400, body
        assert "error" in res.json()


async def test_reduce_stock_missing_item(client, catalogs):
    res = await client.put("/api/inventory/999/reduce-stock", json={"reduceAmount": 1})
    assert res.status_code == 404


async def test_phase_out(client, new_item):
    item = await new_item()
    res = await client.put(f"/api/inventory/{item['id']}/phase-out")
    assert res.status_code == 200
    assert res.json()["status"] == "Phased Out"

    res = await client.put("/api/inventory/999/phase-out")
    assert res.status_code == 404


async def test_delete(client, new_item):
    item = await new_item()
    res = await client.delete(f"/api/inventory/{item['id']}")
    assert res.json() == {"ok": True}

    res = await client.get(f"/api/inventory/{item['id']}")
    assert res.status_code == 404

    res = await client.delete(f"/api/inventory/{item['id']}")
    assert res.status_code == 404


async def test_stock_change_notifies_subscriber_once(client, new_item, notifier):
    item = await new_item(stock=50)
    conn = notifier.subscribe(PushConnection())

    res = await client.put(f"/api/inventory/{item['id']}", json={"stock": 20})
    assert res.status_code == 200

    assert conn.pending() == 1
    chunk = await conn.read(timeout=0.1)
    assert chunk == format_event("inventory_update")
    assert chunk != KEEPALIVE


async def test_every_mutation_broadcasts(client, new_item, notifier):
    conn = notifier.subscribe(RecordingConnection())

    item = await new_item()
    await client.put(f"/api/inventory/{item['id']}", json={"stock": 3})
    await client.put(f"/api/inventory/{item['id']}/reduce-stock", json={"reduceAmount": 1})
    await client.put(f"/api/inventory/{item['id']}/phase-out")
    await client.delete(f"/api/inventory/{item['id']}")

    assert conn.chunks == [format_event("inventory_update")] * 5


async def test_failed_mutation_does_not_broadcast(client, catalogs, notifier):
    conn = notifier.subscribe(RecordingConnection())
    await client.put("/api/inventory/999", json={"stock": 3})
    await client.put("/api/inventory/999/reduce-stock", json={"reduceAmount": 0})
    assert conn.chunks == []


async def test_disconnected_subscriber_is_skipped(client, new_item, notifier):
    conn = notifier.subscribe(RecordingConnection())
    conn.close()
    notifier.unsubscribe(conn)

    item = await new_item()
    res = await client.put(f"/api/inventory/{item['id']}", json={"stock": 1})
    assert res.status_code == 200
    assert conn not in notifier
    assert conn.chunks == []
