import asyncio

import httpx
import pytest

from conftest import random_name

from pizza_service.core.config import Settings
from pizza_service.core.exceptions import ValidationError
from pizza_service.database import Database
from pizza_service.main import create_app
from pizza_service.repository import PizzaRepository, name_pattern


async def never_found(*args, **kwargs):
    return None


async def never_taken(*args, **kwargs):
    return False


def run_with_database(tmp_path, scenario):
    """Run ``scenario(database)`` against a fresh SQLite file."""

    async def _run():
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
        await database.init()
        try:
            return await scenario(database)
        finally:
            await database.dispose()

    return asyncio.run(_run())


def test_name_pattern():
    assert name_pattern(None) is None
    assert name_pattern("*") is None
    assert name_pattern("pizza*") == "pizza%"
    assert name_pattern("50%_off") == "50\\%\\_off"


# =============================================================================
# UNIQUE KEYS UNDER RACING WRITERS
# =============================================================================
# The pre-insert lookup is disabled on the second writer so it reaches the
# database constraint, as a request that lost the race would.

def test_add_user_duplicate_email_at_commit(tmp_path):
    async def scenario(database):
        async with database.session_maker() as session:
            await PizzaRepository(session).add_user("first", "same@race.test", "a")

        async with database.session_maker() as session:
            repository = PizzaRepository(session)
            repository.get_user_by_email = never_found
            with pytest.raises(ValidationError) as raised:
                await repository.add_user("second", "same@race.test", "b")
            return raised.value

    error = run_with_database(tmp_path, scenario)

    assert error.status_code == 400
    assert error.message == "email already registered"


def test_update_user_duplicate_email_at_commit(tmp_path):
    async def scenario(database):
        async with database.session_maker() as session:
            repository = PizzaRepository(session)
            await repository.add_user("first", "taken@race.test", "a")
            second = await repository.add_user("second", "free@race.test", "b")

        async with database.session_maker() as session:
            repository = PizzaRepository(session)
            repository.get_user_by_email = never_found
            with pytest.raises(ValidationError):
                await repository.update_user(second.id, email="taken@race.test")

        async with database.session_maker() as session:
            return await PizzaRepository(session).get_user(second.id)

    unchanged = run_with_database(tmp_path, scenario)

    assert unchanged.email == "free@race.test"


def test_create_franchise_duplicate_name_at_flush(tmp_path):
    async def scenario(database):
        async with database.session_maker() as session:
            await PizzaRepository(session).create_franchise("pizzaPocket", [])

        async with database.session_maker() as session:
            repository = PizzaRepository(session)
            repository.franchise_name_taken = never_taken
            with pytest.raises(ValidationError) as raised:
                await repository.create_franchise("pizzaPocket", [])
            return raised.value

    error = run_with_database(tmp_path, scenario)

    assert error.message == "franchise name already exists"


def test_verify_credentials(tmp_path):
    async def scenario(database):
        async with database.session_maker() as session:
            repository = PizzaRepository(session)
            user = await repository.add_user("diner", "creds@race.test", "secret")
            assert user.password != "secret"
            return (
                await repository.verify_credentials("creds@race.test", "secret"),
                await repository.verify_credentials("creds@race.test", "wrong"),
            )

    good, bad = run_with_database(tmp_path, scenario)

    assert good is not None and good.email == "creds@race.test"
    assert bad is None


# =============================================================================
# CONCURRENT REQUESTS
# =============================================================================

def test_concurrent_registrations_for_one_email(tmp_path):
    settings = Settings(
        _env_file=None,
        env_mode="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'concurrent.db'}",
        jwt_secret="concurrent-secret",
        default_admin_password="",
    )
    app = create_app(settings)
    email = f"{random_name()}@race.test"

    async def register_all():
        async with app.router.lifespan_context(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://pizza.test") as client:
                return await asyncio.gather(*[
                    client.post("/api/auth", json={"name": f"racer {i}", "email": email, "password": "a"})
                    for i in range(4)
                ])

    responses = asyncio.run(register_all())

    statuses = sorted(r.status_code for r in responses)
    assert statuses == [200, 400, 400, 400]
    for response in responses:
        if response.status_code == 400:
            assert response.json() == {"message": "email already registered"}
