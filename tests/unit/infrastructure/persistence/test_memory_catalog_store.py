"""Unit tests for InMemoryCatalogStore."""

import asyncio

import pytest

from gallery.domain.catalog.model.record import CatalogRecord, RecordField


class TestInMemoryCatalogStore:
    @pytest.mark.asyncio
    async def test_create_is_insert_if_absent(self, catalog):
        assert await catalog.create(CatalogRecord(id="cat.jpg", caption="first"))
        assert not await catalog.create(CatalogRecord(id="cat.jpg", caption="second"))
        assert (await catalog.get("cat.jpg")).caption == "first"

    @pytest.mark.asyncio
    async def test_update_missing(self, catalog):
        assert await catalog.update("ghost.jpg", {RecordField.NAME: "x"}) is None
        assert len(catalog) == 0

    @pytest.mark.asyncio
    async def test_concurrent_field_updates_do_not_clobber(self, catalog):
        await catalog.create(CatalogRecord(id="cat.jpg"))

        await asyncio.gather(
            catalog.update("cat.jpg", {RecordField.CAPTION: "A cat"}),
            catalog.update("cat.jpg", {RecordField.NAME: "Ada"}),
            catalog.update("cat.jpg", {RecordField.DATE: "2024"}),
        )

        record = await catalog.get("cat.jpg")
        assert (record.caption, record.name, record.date) == ("A cat", "Ada", "2024")
