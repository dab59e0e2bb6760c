"""Restaurant profile reads, branding, settings and slug maintenance."""

from menuhub.models import Restaurant
from tests.factories import add_restaurant


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------

async def test_restaurant_profile(client, session_maker):
    await add_restaurant(session_maker, phone_number="+9647501234567")

    response = await client.get("/api/restaurant")

    assert response.status_code == 200
    body = response.json()
    assert body["slug"] == "pizza-palace"
    assert body["nameEn"] == "Pizza Palace"
    assert body["phoneNumber"] == "+9647501234567"
    assert body["welcomeOverlayColor"] == "#000000"
    assert body["welcomeOverlayOpacity"] == 0.5
    assert "s-maxage=120" in response.headers["cache-control"]


async def test_restaurant_profile_missing(client):
    response = await client.get("/api/restaurant")

    assert response.status_code == 404
    assert response.json() == {"error": "Restaurant not found"}


async def test_restaurant_by_slug(client, session_maker):
    await add_restaurant(session_maker)

    response = await client.get("/api/restaurant/pizza-palace")

    assert response.status_code == 200
    assert response.json()["nameAr"] == "قصر البيتزا"
    assert response.json()["logo"] is None
    assert response.headers["cache-control"] == "no-store"


async def test_restaurant_by_unknown_slug(client):
    response = await client.get("/api/restaurant/ghost-town")

    assert response.status_code == 404
    assert response.json() == {"error": "Restaurant not found", "slug": "ghost-town"}
    assert response.headers["cache-control"] == "no-store"


async def test_data_restaurant_by_slug_and_default(client, session_maker):
    await add_restaurant(session_maker)

    by_slug = await client.get("/data/restaurant", params={"slug": "pizza-palace"})
    default = await client.get("/data/restaurant")

    assert by_slug.status_code == default.status_code == 200
    assert by_slug.json()["id"] == default.json()["id"]


async def test_data_restaurant_unknown_slug(client):
    response = await client.get("/data/restaurant", params={"slug": "nowhere"})

    assert response.status_code == 404
    assert response.json() == {"error": "Restaurant not found for slug: nowhere"}


async def test_slug_listing(client, session_maker):
    await add_restaurant(session_maker, slug="zeytun", name_en="Zeytun")
    await add_restaurant(session_maker, slug="al-bait", name_en="Al Bait")

    response = await client.get("/api/restaurants/slugs")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert [r["slug"] for r in body["restaurants"]] == ["al-bait", "zeytun"]
    assert set(body["restaurants"][0]) == {"id", "nameEn", "slug"}


async def test_root_renders_first_restaurant(client, session_maker):
    await add_restaurant(session_maker)

    response = await client.get("/")

    assert response.status_code == 200
    assert "Pizza Palace" in response.text


async def test_root_without_restaurant(client):
    response = await client.get("/")

    assert response.status_code == 404
    assert "No restaurant has been set up yet." in response.text


# ---------------------------------------------------------------------------
# Branding
# ---------------------------------------------------------------------------

async def test_branding_round_trip(admin_client, session_maker):
    await add_restaurant(session_maker)
    colors = {"menuGradientStart": "#5C0015", "priceText": "#FBBF24", "welcomeOverlayOpacity": 0.4}

    empty = await admin_client.get("/api/admin/branding")
    saved = await admin_client.put("/api/admin/branding", json={"brandColors": colors})
    fetched = await admin_client.get("/api/admin/branding")

    assert empty.json() == {"brandColors": None}
    assert saved.json() == {"brandColors": colors}
    assert fetched.json() == {"brandColors": colors}


async def test_branding_applied_to_welcome_page(client, session_maker):
    await add_restaurant(session_maker, brand_colors={"menuGradientStart": "#123456"})

    response = await client.get("/pizza-palace")

    assert "--bg: #123456" in response.text


async def test_branding_without_restaurant(admin_client):
    response = await admin_client.get("/api/admin/branding")

    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

async def test_settings_view_uses_empty_strings(admin_client, session_maker):
    await add_restaurant(session_maker)

    response = await admin_client.get("/api/admin/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["googleMapsUrl"] == ""
    assert body["phoneNumber"] == ""
    assert body["welcomeTextEn"] == ""
    assert body["nameKu"] == "پیتزا پالاس"


async def test_settings_partial_update(admin_client, session_maker):
    restaurant = await add_restaurant(
        session_maker, phone_number="+964111", google_maps_url="https://maps.example/pp"
    )

    response = await admin_client.put("/api/admin/settings", json={
        "nameEn": "Pizza Palace Erbil",
        "phoneNumber": "",
        "welcomeOverlayOpacity": 0.8,
        "welcomeTextEn": "  Fresh every day ",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["nameEn"] == "Pizza Palace Erbil"
    assert body["phoneNumber"] == ""
    assert body["googleMapsUrl"] == "https://maps.example/pp"
    assert body["welcomeOverlayOpacity"] == 0.8
    assert body["welcomeTextEn"] == "Fresh every day"

    async with session_maker() as session:
        stored = await session.get(Restaurant, restaurant.id)
    assert stored.phone_number is None
    assert stored.name_ku == "پیتزا پالاس"
    # The slug is not derived from the name on update
    assert stored.slug == "pizza-palace"


async def test_settings_rejects_out_of_range_opacity(admin_client, session_maker):
    await add_restaurant(session_maker)

    response = await admin_client.put("/api/admin/settings", json={"welcomeOverlayOpacity": 1.5})

    assert response.status_code == 400


# ---------------------------------------------------------------------------
# Slug backfill
# ---------------------------------------------------------------------------

async def test_backfill_slugs(admin_client, session_maker):
    keeper = await add_restaurant(session_maker, slug="pizza-palace", name_en="Pizza Palace")
    clash = await add_restaurant(session_maker, slug="pp-old", name_en="Pizza Palace")
    renamed = await add_restaurant(session_maker, slug="tmp-1", name_en="Legends Restaurant")

    response = await admin_client.post("/api/admin/backfill-slugs")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["totalRestaurants"] == 3
    assert body["message"] == "Backfilled slugs for 2 restaurant(s)"

    changes = {change["id"]: change for change in body["results"]}
    assert keeper.id not in changes
    assert changes[renamed.id] == {
        "id": renamed.id,
        "nameEn": "Legends Restaurant",
        "oldSlug": "tmp-1",
        "newSlug": "legends-restaurant",
    }
    assert changes[clash.id]["newSlug"] == f"pizza-palace-{clash.id[-6:]}"

    legends = await admin_client.get("/legends-restaurant")
    assert legends.status_code == 200


async def test_backfill_is_stable(admin_client, session_maker):
    await add_restaurant(session_maker, slug="pizza-palace", name_en="Pizza Palace")

    first = await admin_client.post("/api/admin/backfill-slugs")
    second = await admin_client.post("/api/admin/backfill-slugs")

    assert first.json()["results"] == []
    assert second.json()["results"] == []
