import logging

import httpx
import pytest
import pytest_asyncio
from click.testing import CliRunner

from redoubt.app import create_app
from redoubt.policy.models import Policy

from stubs import const, echo, fail, make_env


@pytest.fixture(autouse=True)
def restore_root_logging():
    """CLI commands reconfigure the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def env():
    return make_env("m1", "u1")


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def policies():
    return [
        Policy("base", produce=(echo(tasks=["t1"]), echo(products=["motd"]))),
        Policy("denied", verify=(const(False),), produce=(echo(tasks=["never"]),)),
        Policy("extra", verify=(const(True),), produce=(echo(tasks=["t2", "t3"]),)),
    ]


@pytest_asyncio.fixture
async def async_client(policies):
    transport = httpx.ASGITransport(app=create_app(policies))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def failing_client():
    app = create_app([
        Policy("first", produce=(echo(tasks=["t1"]),)),
        Policy("second", produce=(fail("vault sealed"),)),
    ])
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
