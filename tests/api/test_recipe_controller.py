"""
API tests for Recipe controller.

Drives the multipart recipe endpoints end to end with real bearer tokens,
an in-memory database and a temporary blob store.
"""

import jwt
import pytest
from fastapi import status
from httpx import AsyncClient

from tests.factories import auth_headers, png_bytes


def _form(cuisine_type, **overrides) -> dict:
    data = {
        "name": "Pasta al pomodoro",
        "description": "Weeknight classic",
        "ingredients": ["pasta", "tomatoes", "basil"],
        "steps": ["boil pasta", "make sauce", "combine"],
        "cuisine_type_id": str(cuisine_type.id),
    }
    data.update(overrides)
    return data


class TestAuthentication:
    """Requests without a valid bearer token are rejected."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/recipes/")

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    @pytest.mark.asyncio
    async def test_token_with_wrong_signature(self, client: AsyncClient, owner_user):
        token = jwt.encode({"sub": str(owner_user.id)}, "not-the-secret-this-service-verifies-with", algorithm="HS256")

        response = await client.get("/api/recipes/", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["status"] == "error"

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient, default_roles):
        class Ghost:
            id = 4242

        response = await client.get("/api/recipes/", headers=auth_headers(Ghost))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_inactive_user(self, client: AsyncClient, test_db, owner_user):
        owner_user.is_active = False
        await test_db.commit()

        response = await client.get("/api/recipes/", headers=auth_headers(owner_user))

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestListRecipes:
    """Test cases for GET /api/recipes/."""

    @pytest.mark.asyncio
    async def test_owner_lists_own_recipes(
        self, client: AsyncClient, make_recipe, owner_user, other_owner
    ):
        mine = await make_recipe(owner_user, name="Mine")
        await make_recipe(other_owner, name="Theirs")

        response = await client.get("/api/recipes/", headers=auth_headers(owner_user))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert [item["id"] for item in data["items"]] == [mine.id]
        assert data["items"][0]["can_edit"] is True
        assert data["items"][0]["user"]["email"] == "owner@example.com"
        assert data["pagination"]["total"] == 1
        assert data["pagination"]["per_page"] == 10

    @pytest.mark.asyncio
    async def test_sub_admin_lists_all_read_only(
        self, client: AsyncClient, make_recipe, owner_user, other_owner, sub_admin_user
    ):
        await make_recipe(owner_user)
        await make_recipe(other_owner)

        response = await client.get("/api/recipes/", headers=auth_headers(sub_admin_user))

        items = response.json()["data"]["items"]
        assert len(items) == 2
        assert all(item["can_edit"] is False and item["can_delete"] is False for item in items)

    @pytest.mark.asyncio
    async def test_search_sort_and_paging_parameters(
        self, client: AsyncClient, make_recipe, owner_user
    ):
        for name in ("Pasta B", "Pasta A", "Soup", "Pasta C"):
            await make_recipe(owner_user, name=name, description="")

        response = await client.get(
            "/api/recipes/",
            params={"search": "pasta", "column": "name", "dir": "asc", "length": 2, "page": 2},
            headers=auth_headers(owner_user),
        )

        data = response.json()["data"]
        assert [item["name"] for item in data["items"]] == ["Pasta C"]
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["total_pages"] == 2

    @pytest.mark.asyncio
    async def test_empty_filter_values_are_ignored(self, client: AsyncClient, make_recipe, owner_user):
        await make_recipe(owner_user)

        response = await client.get(
            "/api/recipes/?cuisine_type_id=&user_id=&search=", headers=auth_headers(owner_user)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_malformed_filter_value(self, client: AsyncClient, owner_user):
        response = await client.get(
            "/api/recipes/", params={"cuisine_type_id": "pasta"}, headers=auth_headers(owner_user)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_CRITERIA"


class TestCreateRecipe:
    """Test cases for POST /api/recipes/."""

    @pytest.mark.asyncio
    async def test_create_with_image(self, client: AsyncClient, owner_user, cuisine_type, blob_store):
        response = await client.post(
            "/api/recipes/",
            data=_form(cuisine_type),
            files={"image": ("dish.png", png_bytes(80, 40), "image/png")},
            headers=auth_headers(owner_user),
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "Recipe created successfully"
        recipe = body["data"]
        assert recipe["name"] == "Pasta al pomodoro"
        assert recipe["ingredients"] == ["pasta", "tomatoes", "basil"]
        assert recipe["cuisine_type"]["name"] == "Italian"
        assert recipe["image"].startswith("/storage/public/recipes/dish_")
        attachment = recipe["attachments"][0]
        assert attachment["metadata"]["aspect_ratio"] == 2.0
        assert attachment["is_image"] is True
        relative = recipe["image"].removeprefix("/storage/public/")
        assert await blob_store.exists("public", relative)

    @pytest.mark.asyncio
    async def test_create_without_image(self, client: AsyncClient, owner_user, cuisine_type):
        response = await client.post(
            "/api/recipes/", data=_form(cuisine_type), headers=auth_headers(owner_user)
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["image"] is None

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, client: AsyncClient, owner_user, cuisine_type):
        response = await client.post(
            "/api/recipes/", data=_form(cuisine_type, name="   "), headers=auth_headers(owner_user)
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_FAILED"
        assert "name" in body["details"]

    @pytest.mark.asyncio
    async def test_oversized_image_is_rejected(self, client: AsyncClient, owner_user, cuisine_type):
        from app.core.config import settings

        response = await client.post(
            "/api/recipes/",
            data=_form(cuisine_type),
            files={"image": ("big.png", b"0" * (settings.max_upload_size + 1), "image/png")},
            headers=auth_headers(owner_user),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_sub_admin_cannot_create(self, client: AsyncClient, sub_admin_user, cuisine_type):
        response = await client.post(
            "/api/recipes/", data=_form(cuisine_type), headers=auth_headers(sub_admin_user)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == "FORBIDDEN"


class TestSingleRecipe:
    """Test cases for GET, PUT and DELETE /api/recipes/{id}."""

    @pytest.mark.asyncio
    async def test_get_own_and_foreign(self, client: AsyncClient, make_recipe, owner_user, other_owner):
        mine = await make_recipe(owner_user)
        theirs = await make_recipe(other_owner)

        own = await client.get(f"/api/recipes/{mine.id}", headers=auth_headers(owner_user))
        foreign = await client.get(f"/api/recipes/{theirs.id}", headers=auth_headers(owner_user))

        assert own.status_code == status.HTTP_200_OK
        assert own.json()["data"]["id"] == mine.id
        assert foreign.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_get_missing(self, client: AsyncClient, admin_user):
        response = await client.get("/api/recipes/9999", headers=auth_headers(admin_user))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body["error_code"] == "NOT_FOUND"
        assert body["details"] == {"model": "Recipe", "id": 9999}

    @pytest.mark.asyncio
    async def test_update_fields_and_image(self, client: AsyncClient, make_recipe, owner_user):
        recipe = await make_recipe(owner_user, name="Old name")

        response = await client.put(
            f"/api/recipes/{recipe.id}",
            data={"name": "New name", "steps": ["only step"]},
            files={"image": ("new.png", png_bytes(), "image/png")},
            headers=auth_headers(owner_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["name"] == "New name"
        assert data["steps"] == ["only step"]
        assert data["ingredients"] == ["flour", "water", "salt"]
        assert data["image"] is not None

    @pytest.mark.asyncio
    async def test_admin_updates_foreign_recipe(self, client: AsyncClient, make_recipe, owner_user, admin_user):
        recipe = await make_recipe(owner_user)

        response = await client.put(
            f"/api/recipes/{recipe.id}", data={"name": "Moderated"}, headers=auth_headers(admin_user)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["user"]["id"] == owner_user.id

    @pytest.mark.asyncio
    async def test_other_owner_cannot_update_or_delete(
        self, client: AsyncClient, make_recipe, owner_user, other_owner
    ):
        recipe = await make_recipe(owner_user)

        update = await client.put(
            f"/api/recipes/{recipe.id}", data={"name": "Hijacked"}, headers=auth_headers(other_owner)
        )
        delete = await client.delete(f"/api/recipes/{recipe.id}", headers=auth_headers(other_owner))

        assert update.status_code == status.HTTP_403_FORBIDDEN
        assert delete.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, owner_user, cuisine_type):
        created = await client.post(
            "/api/recipes/",
            data=_form(cuisine_type),
            files={"image": ("dish.png", png_bytes(), "image/png")},
            headers=auth_headers(owner_user),
        )
        recipe_id = created.json()["data"]["id"]

        response = await client.delete(f"/api/recipes/{recipe_id}", headers=auth_headers(owner_user))
        missing = await client.get(f"/api/recipes/{recipe_id}", headers=auth_headers(owner_user))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == {"id": recipe_id, "attachments_removed": 1}
        assert missing.status_code == status.HTTP_404_NOT_FOUND
