import asyncio

import pytest
from sqlalchemy import select

from app.core.exceptions import InvalidStrainCode, StrainCodeTaken, ValidationException
from app.models.strain_registry import StrainRegistryEntry
from app.schemas.strain import StrainCodeItem
from app.services import strain_registry_service


async def test_registers_new_strain(db_session, user_id):
    result = await strain_registry_service.resolve_or_register(
        db_session, user_id, "Blue Dream", " blu "
    )

    assert result.code == "BLU"
    assert result.is_new is True
    assert result.warning is None
    assert await strain_registry_service.get_strain_code(db_session, user_id, "Blue Dream") == "BLU"


async def test_same_name_is_case_and_whitespace_insensitive(db_session, user_id):
    first = await strain_registry_service.resolve_or_register(
        db_session, user_id, "Blue Dream", "BLU"
    )
    second = await strain_registry_service.resolve_or_register(
        db_session, user_id, "  blue   DREAM ", "BLU"
    )

    assert first.code == second.code == "BLU"
    assert second.is_new is False
    assert second.warning is None


async def test_existing_strain_without_proposed_code(db_session, user_id):
    await strain_registry_service.resolve_or_register(db_session, user_id, "Blue Dream", "BLU")

    result = await strain_registry_service.resolve_or_register(db_session, user_id, "blue dream")

    assert result.code == "BLU"
    assert result.warning is None


async def test_different_proposed_code_keeps_original_with_warning(db_session, user_id):
    await strain_registry_service.resolve_or_register(db_session, user_id, "Blue Dream", "BLU")

    result = await strain_registry_service.resolve_or_register(
        db_session, user_id, "Blue Dream", "BDR"
    )

    assert result.code == "BLU"
    assert result.is_new is False
    assert "BLU" in result.warning
    assert await strain_registry_service.is_strain_code_taken(db_session, user_id, "BDR") is False


async def test_code_owned_by_other_strain_is_rejected(db_session, user_id):
    await strain_registry_service.resolve_or_register(db_session, user_id, "Blue Dream", "BLU")

    with pytest.raises(StrainCodeTaken) as exc_info:
        await strain_registry_service.resolve_or_register(
            db_session, user_id, "Blueberry", "blu"
        )
    assert exc_info.value.status_code == 409
    assert exc_info.value.code == "BLU"


async def test_codes_are_scoped_per_user(db_session, user_id):
    await strain_registry_service.resolve_or_register(db_session, user_id, "Blue Dream", "BLU")

    result = await strain_registry_service.resolve_or_register(
        db_session, "other-user", "Blueberry", "BLU"
    )

    assert result.code == "BLU"
    assert result.is_new is True


@pytest.mark.parametrize("code", ["BL", "B1U", "BLUE", "XXX"])
async def test_invalid_or_reserved_code(db_session, user_id, code):
    with pytest.raises(InvalidStrainCode):
        await strain_registry_service.resolve_or_register(
            db_session, user_id, "Blue Dream", code
        )
    assert await strain_registry_service.list_codes(db_session, user_id) == []


@pytest.mark.parametrize("code", [None, "", "   "])
async def test_new_strain_requires_code(db_session, user_id, code):
    with pytest.raises(InvalidStrainCode, match="required"):
        await strain_registry_service.resolve_or_register(
            db_session, user_id, "Blue Dream", code
        )


async def test_blank_strain_name(db_session, user_id):
    with pytest.raises(ValidationException):
        await strain_registry_service.resolve_or_register(db_session, user_id, "   ", "BLU")


async def test_list_codes(db_session, user_id):
    await strain_registry_service.resolve_or_register(db_session, user_id, "OG Kush", "OGK")
    await strain_registry_service.resolve_or_register(db_session, user_id, "Blue Dream", "BLU")
    await strain_registry_service.resolve_or_register(db_session, "other-user", "Haze", "HAZ")

    items = await strain_registry_service.list_codes(db_session, user_id)

    assert [(i.strain_name, i.strain_code) for i in items] == [
        ("Blue Dream", "BLU"),
        ("OG Kush", "OGK"),
    ]


async def test_concurrent_registration_of_same_code(db_session, session_factory, user_id):
    """Dos cepas nuevas compitiendo por el mismo código: solo una lo obtiene."""

    async def _register(name: str):
        async with session_factory() as session:
            return await strain_registry_service.resolve_or_register(
                session, user_id, name, "BLU"
            )

    results = await asyncio.gather(
        _register("Blue Dream"), _register("Blueberry"), return_exceptions=True
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], StrainCodeTaken)
    assert len(await strain_registry_service.list_codes(db_session, user_id)) == 1


async def test_concurrent_registration_of_same_name(db_session, session_factory, user_id):
    """Dos requests registran la misma cepa con códigos distintos: gana uno."""

    async def _register(code: str):
        async with session_factory() as session:
            return await strain_registry_service.resolve_or_register(
                session, user_id, "Blue Dream", code
            )

    first, second = await asyncio.gather(_register("BLU"), _register("BDR"))

    assert first.code == second.code
    assert sorted([first.is_new, second.is_new]) == [False, True]
    loser = first if not first.is_new else second
    assert loser.warning is not None
    assert [i.strain_code for i in await strain_registry_service.list_codes(db_session, user_id)] == [
        first.code
    ]


async def test_strain_code_item_reads_orm_entries(db_session, user_id):
    await strain_registry_service.resolve_or_register(db_session, user_id, "OG Kush", "OGK")
    entry = (
        await db_session.execute(
            select(StrainRegistryEntry).where(StrainRegistryEntry.user_id == user_id)
        )
    ).scalar_one()

    item = StrainCodeItem.model_validate(entry)

    assert (item.strain_name, item.strain_code) == ("OG Kush", "OGK")
