"""Tests for the kopf handler tracing decorator."""

import pytest

from mcs_operator.observability.tracing import traced_handler


def test_rejects_sync_functions():
    with pytest.raises(TypeError):

        @traced_handler("sync")
        def handler(**kwargs):
            return None


@pytest.mark.asyncio
async def test_passes_result_through():
    @traced_handler("ok")
    async def handler(name, namespace, **kwargs):
        return f"{namespace}/{name}"

    assert await handler(name="web", namespace="default") == "default/web"


@pytest.mark.asyncio
async def test_reraises_handler_errors():
    @traced_handler("boom")
    async def handler(**kwargs):
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await handler(name="web", namespace="default")
