"""SQLAlchemy repository and end-to-end flow on a throwaway SQLite database."""
import asyncio
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from core.database import build_engine, build_session_factory, init_db
from core.errors import RepositoryError
from core.settings import Settings
from main import create_goods_service
from modules.goods.repository import SqlGoodsRepository
from modules.goods.types import GoodType
from modules.goods.validation import parse_candidate


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'goods.db'}"


@pytest.fixture
def repository(database_url):
    engine = build_engine(database_url)
    init_db(engine)
    yield SqlGoodsRepository(build_session_factory(engine))
    engine.dispose()


def insert(repository, candidate):
    return asyncio.run(repository.insert(parse_candidate(candidate)))


def test_insert_and_find_keep_list_order(repository):
    good_id = insert(
        repository,
        {
            "name": "Bike",
            "type": "finished",
            "cost": 100,
            "processTime": 8,
            "price": 250,
            "properties": [{"name": "color", "value": "red"}, {"name": "size", "value": ""}],
            "components": [{"id": 12, "quantity": 2}, {"id": 4, "quantity": 1.5}],
        },
    )

    good = asyncio.run(repository.find_by_id(good_id))

    assert good["type"] == "finished"
    assert good["price"] == pytest.approx(250)
    assert good["vendor"] is None
    assert good["archived"] is False
    assert good["processTime"] == pytest.approx(8)
    assert good["properties"] == [{"name": "color", "value": "red"}, {"name": "size", "value": ""}]
    assert good["components"] == [{"id": 12, "quantity": 2.0}, {"id": 4, "quantity": 1.5}]


def test_variant_fields_are_stored_only_for_their_type(repository):
    raw_id = insert(repository, {"name": "Bolt", "type": "raw", "cost": 1, "processTime": 1, "vendor": "Acme", "price": 3})
    semi_id = insert(repository, {"name": "Axle", "type": "semi-finished", "cost": 1, "processTime": 1, "vendor": "Acme"})

    raw = asyncio.run(repository.find_by_id(raw_id))
    semi = asyncio.run(repository.find_by_id(semi_id))

    assert raw["vendor"] == "Acme" and raw["price"] is None
    assert semi["vendor"] is None and semi["price"] is None


def test_find_missing_returns_none(repository):
    assert asyncio.run(repository.find_by_id(404)) is None


def test_list_by_type_and_archived(repository):
    first = insert(repository, {"name": "A", "type": "raw", "cost": 1, "processTime": 1, "vendor": "V"})
    second = insert(repository, {"name": "B", "type": "raw", "cost": 1, "processTime": 1, "vendor": "V"})
    insert(repository, {"name": "C", "type": "semi-finished", "cost": 1, "processTime": 1})

    assert asyncio.run(repository.set_archived(second, True)) == 1

    active = asyncio.run(repository.list_by_type(GoodType.RAW))
    everything = asyncio.run(repository.list_by_type(GoodType.RAW, include_archived=True))
    archived = asyncio.run(repository.list_archived_by_type(GoodType.RAW))

    assert [g["id"] for g in active] == [first]
    assert [g["id"] for g in everything] == [first, second]
    assert [g["id"] for g in archived] == [second]
    assert len(asyncio.run(repository.list_all())) == 3


def test_set_archived_unknown_id_affects_nothing(repository):
    assert asyncio.run(repository.set_archived(999, True)) == 0


def test_update_overwrites_scalars_and_lists(repository):
    good_id = insert(
        repository,
        {"name": "Frame", "type": "semi-finished", "cost": 4, "processTime": 2, "properties": [{"name": "a", "value": "1"}]},
    )

    affected = asyncio.run(
        repository.update(
            good_id,
            {"name": "Frame v2", "processTime": 3, "properties": [], "components": [{"id": 1, "quantity": 2}]},
        )
    )
    good = asyncio.run(repository.find_by_id(good_id))

    assert affected == 1
    assert good["name"] == "Frame v2"
    assert good["processTime"] == pytest.approx(3)
    assert good["properties"] == []
    assert good["components"] == [{"id": 1, "quantity": 2.0}]
    assert asyncio.run(repository.update(999, {"name": "x"})) == 0


def test_storage_errors_become_repository_errors(database_url):
    engine = build_engine(database_url)
    repository = SqlGoodsRepository(build_session_factory(engine))
    with pytest.raises(RepositoryError):
        asyncio.run(repository.list_all())
    engine.dispose()


def test_concurrent_inserts_each_get_an_id(repository):
    async def insert_many():
        goods = [
            parse_candidate({"name": f"Part {i}", "type": "raw", "cost": 1, "processTime": 1, "vendor": "V"})
            for i in range(5)
        ]
        return await asyncio.gather(*(repository.insert(good) for good in goods))

    ids = asyncio.run(insert_many())
    assert len(set(ids)) == 5


def test_steel_rod_end_to_end(database_url):
    service = create_goods_service(Settings(database_url=database_url, log_level="CRITICAL"))

    created = asyncio.run(
        service.add_single_good({"name": "Steel Rod", "type": "raw", "cost": 5, "processTime": 1, "vendor": "Acme"})
    )
    assert created["status"] is True

    fetched = asyncio.run(service.get_single_good(created["good"]["id"]))
    assert fetched["status"] is True
    assert fetched["message"]["name"] == "Steel Rod"
    assert fetched["message"]["vendor"] == "Acme"
    assert "price" not in fetched["message"]


def test_bill_of_materials_end_to_end(database_url):
    service = create_goods_service(Settings(database_url=database_url, log_level="CRITICAL"))

    rod = asyncio.run(
        service.add_single_good({"name": "Steel Rod", "type": "raw", "cost": 5, "processTime": 1, "vendor": "Acme"})
    )
    rod_id = rod["good"]["id"]
    asyncio.run(service.archive_good(rod_id, True))

    results = asyncio.run(
        service.add_bulk_goods(
            [
                {"name": "Frame", "type": "semi-finished", "cost": 20, "processTime": 4, "components": [{"id": rod_id, "quantity": 4}]},
                {"name": "Wheel", "type": "semi-finished", "cost": 8, "processTime": 2, "components": [{"id": 999, "quantity": 2}]},
            ]
        )
    )

    assert results[0]["status"] is True
    assert results[1] == {
        "status": False,
        "message": "Failed to save component: 999 does not exist",
        "good": results[1]["good"],
    }
    frame = asyncio.run(service.get_single_good(results[0]["good"]["id"]))["message"]
    assert frame["components"] == [{"id": rod_id, "quantity": 4.0}]
    assert "vendor" not in frame and "price" not in frame


def test_oversized_ids_become_repository_errors(repository):
    with pytest.raises(RepositoryError):
        asyncio.run(repository.find_by_id(2**70))
    with pytest.raises(RepositoryError):
        asyncio.run(repository.set_archived(2**70, True))


def test_oversized_ids_come_back_as_envelopes(database_url):
    service = create_goods_service(Settings(database_url=database_url, log_level="CRITICAL"))

    assert asyncio.run(service.get_single_good(2**70)) == {
        "status": False,
        "message": f"Failed while getting good with id {2**70}",
    }
    assert asyncio.run(service.archive_good(2**70, True))["status"] is False
    assert asyncio.run(service.update_good(2**70, {"name": "x"}))["status"] is False

    results = asyncio.run(
        service.add_bulk_goods(
            [
                {"name": "Steel Rod", "type": "raw", "cost": 5, "processTime": 1, "vendor": "Acme"},
                {"name": "Frame", "type": "semi-finished", "cost": 4, "processTime": 2, "components": [{"id": 2**70, "quantity": 1}]},
            ]
        )
    )
    assert [r["status"] for r in results] == [True, False]


def test_update_keeps_other_variant_columns_empty(database_url):
    service = create_goods_service(Settings(database_url=database_url, log_level="CRITICAL"))
    raw = asyncio.run(
        service.add_single_good({"name": "Bolt", "type": "raw", "cost": 1, "processTime": 1, "vendor": "Acme"})
    )
    semi = asyncio.run(service.add_single_good({"name": "Axle", "type": "semi-finished", "cost": 1, "processTime": 1}))
    finished = asyncio.run(
        service.add_single_good({"name": "Bike", "type": "finished", "cost": 1, "processTime": 1, "price": 50})
    )

    asyncio.run(service.update_good(raw["good"]["id"], {"price": 9}))
    asyncio.run(service.update_good(semi["good"]["id"], {"vendor": "Acme", "price": 9}))
    asyncio.run(service.update_good(finished["good"]["id"], {"vendor": "Acme", "price": 60}))

    repository = service.repository
    stored_raw = asyncio.run(repository.find_by_id(raw["good"]["id"]))
    stored_semi = asyncio.run(repository.find_by_id(semi["good"]["id"]))
    stored_finished = asyncio.run(repository.find_by_id(finished["good"]["id"]))

    assert stored_raw["price"] is None and stored_raw["vendor"] == "Acme"
    assert stored_semi["price"] is None and stored_semi["vendor"] is None
    assert stored_finished["vendor"] is None and stored_finished["price"] == pytest.approx(60)
