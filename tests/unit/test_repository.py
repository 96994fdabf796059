"""
Unit tests for the criteria-driven BaseRepository.

Recipes and cuisine types stand in for arbitrary entities; nothing here
depends on recipe business rules.
"""

import pytest

from app.domains.attachment.repository import AttachmentRepository
from app.domains.cuisine_type.repository import CuisineTypeRepository
from app.domains.recipe.repository import RecipeRepository
from app.exceptions.base import (
    InvalidCriteriaError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.shared.repository import WriteContext


@pytest.fixture
def recipes(test_db):
    return RecipeRepository(test_db)


@pytest.fixture
def cuisine_types(test_db):
    return CuisineTypeRepository(test_db)


class TestReads:
    """Test cases for find and list operations."""

    @pytest.mark.asyncio
    async def test_find_returns_entity_or_none(self, recipes, make_recipe, owner_user):
        recipe = await make_recipe(owner_user, name="Soup")

        found = await recipes.find(recipe.id)
        assert found.name == "Soup"
        assert await recipes.find(recipe.id + 1000) is None

    @pytest.mark.asyncio
    async def test_find_or_fail_reports_model_and_id(self, recipes):
        with pytest.raises(NotFoundError) as exc_info:
            await recipes.find_or_fail(999)

        assert exc_info.value.details == {"model": "Recipe", "id": 999}

    @pytest.mark.asyncio
    async def test_find_loads_requested_relations(self, recipes, make_recipe, owner_user):
        recipe = await make_recipe(owner_user)

        found = await recipes.find(recipe.id, ["user", "cuisine_type", "attachments"])

        assert found.user.email == "owner@example.com"
        assert found.cuisine_type.name == "Italian"
        assert found.attachments == []

    @pytest.mark.asyncio
    async def test_unknown_relation_is_rejected(self, recipes, make_recipe, owner_user):
        recipe = await make_recipe(owner_user)

        with pytest.raises(InvalidCriteriaError):
            await recipes.find(recipe.id, ["ingredients_table"])

    @pytest.mark.asyncio
    async def test_equality_and_null_criteria(self, cuisine_types):
        await cuisine_types.create({"name": "Thai", "description": None})
        await cuisine_types.create({"name": "Greek", "description": "Olives"})

        undescribed = await cuisine_types.list_matching({"description": None})
        greek = await cuisine_types.list_matching({"name": "Greek"})

        assert [c.name for c in undescribed] == ["Thai"]
        assert [c.description for c in greek] == ["Olives"]

    @pytest.mark.asyncio
    async def test_operator_criteria(self, recipes, make_recipe, owner_user):
        first = await make_recipe(owner_user, name="A")
        await make_recipe(owner_user, name="B")
        await make_recipe(owner_user, name="C")

        after_first = await recipes.list_matching({"id": (">", first.id)}, order_field="id", order_direction="asc")
        not_b = await recipes.list_matching({"name": ("!=", "B")}, order_field="name", order_direction="asc")
        like_c = await recipes.list_matching({"name": ("like", "C%")})

        assert [r.name for r in after_first] == ["B", "C"]
        assert [r.name for r in not_b] == ["A", "C"]
        assert [r.name for r in like_c] == ["C"]

    @pytest.mark.asyncio
    async def test_contains_is_case_insensitive_and_escapes_wildcards(
        self, recipes, make_recipe, owner_user
    ):
        await make_recipe(owner_user, name="Fresh PASTA", description="")
        await make_recipe(owner_user, name="100% rye", description="")
        await make_recipe(owner_user, name="Rice", description="")

        pasta = await recipes.list_matching({"name": ("contains", "pasta")})
        percent = await recipes.list_matching({"name": ("contains", "%")})

        assert [r.name for r in pasta] == ["Fresh PASTA"]
        assert [r.name for r in percent] == ["100% rye"]

    @pytest.mark.asyncio
    async def test_any_of_group_ors_across_fields(self, recipes, make_recipe, owner_user):
        await make_recipe(owner_user, name="Pasta al forno", description="Baked")
        await make_recipe(owner_user, name="Lasagne", description="Layers of pasta")
        await make_recipe(owner_user, name="Risotto", description="Rice")

        found = await recipes.list_matching(
            {("name", "description"): ("contains", "PASTA")}, order_field="name", order_direction="asc"
        )

        assert [r.name for r in found] == ["Lasagne", "Pasta al forno"]

    @pytest.mark.asyncio
    async def test_in_sets_are_anded_with_criteria(self, recipes, make_recipe, owner_user, other_owner):
        mine = await make_recipe(owner_user, name="Mine")
        await make_recipe(other_owner, name="Theirs")
        other_mine = await make_recipe(owner_user, name="Also mine")

        found = await recipes.list_matching(
            {"user_id": owner_user.id}, in_sets={"id": [mine.id, other_mine.id + 100]}
        )

        assert [r.id for r in found] == [mine.id]

    @pytest.mark.asyncio
    async def test_empty_in_set_matches_nothing(self, recipes, make_recipe, owner_user):
        await make_recipe(owner_user)

        assert await recipes.list_matching(in_sets={"id": []}) == []

    @pytest.mark.asyncio
    async def test_unknown_field_and_operator_are_rejected(self, recipes):
        with pytest.raises(InvalidCriteriaError):
            await recipes.list_matching({"password": "x"})

        with pytest.raises(InvalidCriteriaError):
            await recipes.list_matching({"name": ("regex", "x")})

        with pytest.raises(InvalidCriteriaError):
            await recipes.count(in_sets={"nope": [1]})

    @pytest.mark.asyncio
    async def test_default_order_is_newest_first(self, recipes, make_recipe, owner_user):
        for name in ("old", "middle", "new"):
            await make_recipe(owner_user, name=name)

        assert [r.name for r in await recipes.list_matching()] == ["new", "middle", "old"]
        newest = await recipes.find_one_matching({"user_id": owner_user.id})
        assert newest.name == "new"

    @pytest.mark.asyncio
    async def test_invalid_direction_is_rejected(self, recipes):
        with pytest.raises(InvalidCriteriaError):
            await recipes.list_matching(order_field="name", order_direction="sideways")

    @pytest.mark.asyncio
    async def test_all_and_first(self, recipes, make_recipe, owner_user):
        assert await recipes.first() is None

        await make_recipe(owner_user, name="older")
        await make_recipe(owner_user, name="newer")

        assert [r.name for r in await recipes.all()] == ["newer", "older"]
        assert (await recipes.first()).name == "newer"

    @pytest.mark.asyncio
    async def test_find_by_attribute(self, recipes, make_recipe, owner_user):
        await make_recipe(owner_user, name="Gnocchi")

        assert (await recipes.find_by("name", "Gnocchi")).name == "Gnocchi"
        assert await recipes.find_by("name", "Ravioli") is None


class TestCountsAndPages:
    """Test cases for count, exists and paginate."""

    @pytest.mark.asyncio
    async def test_count_exists_and_paginate_agree(self, recipes, make_recipe, owner_user, other_owner):
        for _ in range(3):
            await make_recipe(owner_user)
        await make_recipe(other_owner)

        criteria = {"user_id": owner_user.id}
        page = await recipes.paginate(2, criteria=criteria)

        assert await recipes.count(criteria) == 3
        assert await recipes.exists(criteria) is True
        assert await recipes.exists({"user_id": 12345}) is False
        assert page.total == 3
        assert page.total_pages == 2
        assert page.count == 2

    @pytest.mark.asyncio
    async def test_pages_partition_results(self, recipes, make_recipe, owner_user):
        for index in range(7):
            await make_recipe(owner_user, name=f"R{index}")

        seen = []
        for number in (1, 2, 3):
            page = await recipes.paginate(3, order_field="id", order_direction="asc", page=number)
            seen.extend(r.name for r in page.items)

        assert seen == [f"R{index}" for index in range(7)]

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, recipes, make_recipe, owner_user):
        await make_recipe(owner_user)

        page = await recipes.paginate(10, page=5)

        assert page.items == []
        assert page.total == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_size, page", [(0, 1), (-1, 1), (10, 0)])
    async def test_invalid_page_arguments(self, recipes, page_size, page):
        with pytest.raises(InvalidCriteriaError):
            await recipes.paginate(page_size, page=page)


class TestWrites:
    """Test cases for create, update and delete."""

    @pytest.mark.asyncio
    async def test_create_stamps_audit_fields(self, cuisine_types, admin_user):
        cuisine = await cuisine_types.create({"name": "French"}, WriteContext(actor_id=admin_user.id))

        assert cuisine.id is not None
        assert cuisine.created_at is not None
        assert cuisine.created_by == admin_user.id
        assert cuisine.updated_by == admin_user.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["id", "created_at", "updated_at", "created_by", "updated_by"])
    async def test_server_managed_fields_are_rejected(self, cuisine_types, field):
        with pytest.raises(ValidationError) as exc_info:
            await cuisine_types.create({"name": "French", field: 1})

        assert exc_info.value.details == {"field": field}
        assert await cuisine_types.count() == 0

    @pytest.mark.asyncio
    async def test_unknown_attribute_is_rejected(self, cuisine_types):
        with pytest.raises(ValidationError):
            await cuisine_types.create({"name": "French", "spiciness": 3})

    @pytest.mark.asyncio
    async def test_update_returns_updated_entity(self, cuisine_types, admin_user, sub_admin_user):
        cuisine = await cuisine_types.create({"name": "French"}, WriteContext(admin_user.id))

        updated = await cuisine_types.update(
            cuisine.id, {"description": "Butter"}, WriteContext(sub_admin_user.id)
        )

        assert updated.description == "Butter"
        assert updated.created_by == admin_user.id
        assert updated.updated_by == sub_admin_user.id
        assert (await cuisine_types.find(cuisine.id)).description == "Butter"

    @pytest.mark.asyncio
    async def test_update_missing_entity(self, cuisine_types):
        with pytest.raises(NotFoundError):
            await cuisine_types.update(404, {"name": "Nope"})

    @pytest.mark.asyncio
    async def test_update_or_create(self, cuisine_types):
        created = await cuisine_types.update_or_create({"name": "Thai"}, {"description": "Spicy"})
        updated = await cuisine_types.update_or_create({"name": "Thai"}, {"description": "Fragrant"})

        assert created.id == updated.id
        assert updated.description == "Fragrant"
        assert await cuisine_types.count() == 1

    @pytest.mark.asyncio
    async def test_create_many(self, cuisine_types):
        created = await cuisine_types.create_many([{"name": "Thai"}, {"name": "Greek"}])

        assert len(created) == 2
        assert await cuisine_types.count() == 2

    @pytest.mark.asyncio
    async def test_delete(self, cuisine_types):
        cuisine = await cuisine_types.create({"name": "Thai"})

        assert await cuisine_types.delete(cuisine.id) is True
        assert await cuisine_types.find(cuisine.id) is None

        with pytest.raises(NotFoundError):
            await cuisine_types.delete(cuisine.id)

    @pytest.mark.asyncio
    async def test_delete_where_id_in(self, cuisine_types):
        first = await cuisine_types.create({"name": "Thai"})
        second = await cuisine_types.create({"name": "Greek"})
        await cuisine_types.create({"name": "French"})

        assert await cuisine_types.delete_where_id_in([]) == 0
        assert await cuisine_types.delete_where_id_in([first.id, second.id]) == 2
        assert [c.name for c in await cuisine_types.list_matching()] == ["French"]

    @pytest.mark.asyncio
    async def test_database_rejection_becomes_persistence_error(self, test_db):
        attachments = AttachmentRepository(test_db)
        row = {
            "attachable_type": "recipe",
            "attachable_id": 1,
            "original_name": "a.txt",
            "file_name": "a_2024-01-01_00-00-00_abc.txt",
            "file_path": "attachments/a.txt",
            "file_size": 1,
        }
        await attachments.create(row)

        with pytest.raises(PersistenceError):
            await attachments.create(row)

        assert await attachments.count() == 1
