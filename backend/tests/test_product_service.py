"""
Import-Export Backend — Product Service Tests
==============================================

Runs ProductService against a real SQLite database.

What we test:
    ✅ create → get round trip, field coercion, validation failures
    ✅ latest products ordering, search, owner listing
    ✅ partial updates, NotFound on unknown/malformed ids
    ✅ delete removes the product but keeps its import records
"""

import pytest
from sqlalchemy import func, select

from importexport.exceptions import NotFoundError, ValidationError
from importexport.models.product import Product


class TestCreateProduct:

    @pytest.mark.asyncio
    async def test_create_then_get_round_trip(self, db_session, product_service, sample_product_fields):
        created = await product_service.create_product(db_session, sample_product_fields)

        fetched = await product_service.get_product(db_session, created.inserted_id)

        assert created.success is True
        assert fetched.id == created.inserted_id
        assert fetched.name == "Darjeeling Tea"
        assert fetched.image == "https://example.com/tea.jpg"
        assert fetched.price == 12.5
        assert fetched.origin_country == "India"
        assert fetched.rating == 4.6
        assert fetched.quantity == 5
        assert fetched.owner_id == "seller-1"
        assert fetched.created_at is not None
        assert fetched.transfers == []

    @pytest.mark.asyncio
    async def test_numeric_strings_are_coerced(self, db_session, product_service, sample_product_fields):
        fields = {**sample_product_fields, "price": "19.99", "rating": "4", "quantity": "12"}

        created = await product_service.create_product(db_session, fields)

        assert created.product.price == 19.99
        assert created.product.rating == 4.0
        assert created.product.quantity == 12

    @pytest.mark.asyncio
    async def test_user_id_is_accepted_as_owner(self, db_session, product_service, sample_product_fields):
        fields = {k: v for k, v in sample_product_fields.items() if k != "ownerId"}
        fields["userId"] = "legacy-user"

        created = await product_service.create_product(db_session, fields)

        assert created.product.owner_id == "legacy-user"

    @pytest.mark.asyncio
    async def test_missing_price_fails_and_persists_nothing(self, db_session, product_service, sample_product_fields):
        fields = {k: v for k, v in sample_product_fields.items() if k != "price"}

        with pytest.raises(ValidationError) as exc_info:
            await product_service.create_product(db_session, fields)

        assert exc_info.value.field == "price"
        count = (await db_session.execute(select(func.count(Product.pk)))).scalar()
        assert count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field,value",
        [
            ("price", "cheap"),
            ("price", -1),
            ("rating", "excellent"),
            ("quantity", "lots"),
            ("quantity", 2.5),
            ("quantity", -3),
            ("quantity", 2**31),
            ("quantity", 10**20),
            ("name", ""),
            ("originCountry", "   "),
        ],
    )
    async def test_invalid_fields_are_rejected(self, db_session, product_service, sample_product_fields, field, value):
        with pytest.raises(ValidationError):
            await product_service.create_product(db_session, {**sample_product_fields, field: value})

    @pytest.mark.asyncio
    async def test_largest_storable_quantity_is_accepted(self, db_session, product_service, sample_product_fields):
        created = await product_service.create_product(db_session, {**sample_product_fields, "quantity": 2**31 - 1})

        fetched = await product_service.get_product(db_session, created.inserted_id)

        assert fetched.quantity == 2**31 - 1


class TestCatalogReads:

    @pytest.mark.asyncio
    async def test_list_latest_returns_six_newest_descending(self, make_product, db_session, product_service):
        for i in range(10):
            await make_product(name=f"Product {i}")

        latest = await product_service.list_latest(db_session)

        assert [p.name for p in latest] == [f"Product {i}" for i in range(9, 3, -1)]
        assert all(a.created_at >= b.created_at for a, b in zip(latest, latest[1:]))

    @pytest.mark.asyncio
    async def test_list_all_returns_every_product(self, make_product, db_session, product_service):
        for i in range(3):
            await make_product(name=f"Item {i}")

        products = await product_service.list_all(db_session)

        assert len(products) == 3

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, make_product, db_session, product_service):
        await make_product(name="Green Tea")
        await make_product(name="Black TEA leaves")
        await make_product(name="Coffee Beans")

        results = await product_service.search(db_session, "tea")

        assert sorted(p.name for p in results) == ["Black TEA leaves", "Green Tea"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_blank_search_returns_everything(self, make_product, db_session, product_service, text):
        await make_product(name="Green Tea")
        await make_product(name="Coffee Beans")

        results = await product_service.search(db_session, text)

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, make_product, db_session, product_service):
        await make_product(name="100% Cotton")
        await make_product(name="Wool")

        results = await product_service.search(db_session, "%")

        assert [p.name for p in results] == ["100% Cotton"]

    @pytest.mark.asyncio
    async def test_list_by_owner(self, make_product, db_session, product_service):
        await make_product(name="Mine", ownerId="alice")
        await make_product(name="Theirs", ownerId="bob")

        results = await product_service.list_by_owner(db_session, "alice")

        assert [p.name for p in results] == ["Mine"]

    @pytest.mark.asyncio
    async def test_get_unknown_product_raises_not_found(self, db_session, product_service):
        with pytest.raises(NotFoundError):
            await product_service.get_product(db_session, "6f1c7a2e-0000-4000-8000-000000000000")

    @pytest.mark.asyncio
    async def test_get_malformed_id_raises_not_found(self, db_session, product_service):
        with pytest.raises(NotFoundError):
            await product_service.get_product(db_session, "not-an-id")


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_update_merges_only_supplied_fields(self, make_product, db_session, product_service):
        product_id = await make_product()

        result = await product_service.update_product(db_session, product_id, {"price": 20, "createdAt": "ignored"})
        fetched = await product_service.get_product(db_session, product_id)

        assert result.matched_count == 1
        assert result.modified_count == 1
        assert fetched.price == 20.0
        assert fetched.name == "Darjeeling Tea"
        assert fetched.quantity == 5

    @pytest.mark.asyncio
    async def test_update_with_no_editable_fields_is_a_no_op(self, make_product, db_session, product_service):
        product_id = await make_product()

        result = await product_service.update_product(db_session, product_id, {})

        assert result.matched_count == 1
        assert result.modified_count == 0

    @pytest.mark.asyncio
    async def test_update_unknown_product_raises_not_found(self, db_session, product_service):
        with pytest.raises(NotFoundError):
            await product_service.update_product(
                db_session, "6f1c7a2e-0000-4000-8000-000000000000", {"price": 3}
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fields", [{"name": None}, {"rating": "top"}, {"price": "free"}])
    async def test_update_rejects_invalid_values(self, make_product, db_session, product_service, fields):
        product_id = await make_product()

        with pytest.raises(ValidationError):
            await product_service.update_product(db_session, product_id, fields)

    @pytest.mark.asyncio
    async def test_update_cannot_change_stock(self, make_product, db_session, product_service, import_service):
        product_id = await make_product(quantity=5)
        await import_service.import_product(db_session, product_id, "buyer", 2)

        result = await product_service.update_product(db_session, product_id, {"quantity": 99, "rating": 3})
        fetched = await product_service.get_product(db_session, product_id)

        assert result.modified_count == 1
        assert fetched.rating == 3.0
        assert fetched.quantity == 3
        assert fetched.quantity + sum(t.quantity for t in fetched.transfers) == 5

    @pytest.mark.asyncio
    async def test_update_with_only_quantity_changes_nothing(self, make_product, db_session, product_service):
        product_id = await make_product(quantity=5)

        result = await product_service.update_product(db_session, product_id, {"quantity": 0})
        fetched = await product_service.get_product(db_session, product_id)

        assert result.modified_count == 0
        assert fetched.quantity == 5

    @pytest.mark.asyncio
    async def test_delete_then_get_raises_not_found(self, make_product, db_session, product_service):
        product_id = await make_product()

        result = await product_service.delete_product(db_session, product_id)

        assert result.deleted_count == 1
        with pytest.raises(NotFoundError):
            await product_service.get_product(db_session, product_id)

    @pytest.mark.asyncio
    async def test_delete_unknown_product_raises_not_found(self, make_product, db_session, product_service):
        product_id = await make_product()
        await product_service.delete_product(db_session, product_id)

        with pytest.raises(NotFoundError):
            await product_service.delete_product(db_session, product_id)

    @pytest.mark.asyncio
    async def test_delete_keeps_import_records(self, make_product, db_session, product_service, import_service):
        product_id = await make_product(quantity=4)
        await import_service.import_product(db_session, product_id, "buyer", 2)

        await product_service.delete_product(db_session, product_id)
        history = await import_service.list_by_user(db_session, "buyer")

        assert len(history) == 1
        assert history[0].product_id == product_id
        assert history[0].name == "Darjeeling Tea"
