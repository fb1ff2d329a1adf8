"""Unit tests for the GraphQL indexer status client."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from indexsync.services.indexer.status_client import GraphIndexerStatusClient
from indexsync.utils.exceptions import TransientFetchError


def mock_http_session(*responses):
    """aiohttp session whose post() yields the given (status, payload) pairs."""
    session = MagicMock()
    contexts = []
    for status, payload in responses:
        response = MagicMock()
        response.status = status
        response.json = AsyncMock(return_value=payload)
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)
        contexts.append(context)
    session.post = MagicMock(side_effect=contexts)
    return session


def meta(block):
    return {"data": {"_meta": {"block": {"number": block}}}}


class TestGraphIndexerStatusClient:
    """Tests for GraphIndexerStatusClient.get_indexed_block."""

    @pytest.mark.asyncio
    async def test_reads_meta_block(self):
        session = mock_http_session((200, meta(1234)))
        client = GraphIndexerStatusClient(session, "http://indexer/graphql")

        assert await client.get_indexed_block() == 1234
        payload = session.post.call_args.kwargs["json"]
        assert "_meta" in payload["query"]

    @pytest.mark.asyncio
    async def test_missing_meta_is_zero(self):
        session = mock_http_session((200, {"data": {"_meta": None}}))
        client = GraphIndexerStatusClient(session, "http://indexer/graphql")

        assert await client.get_indexed_block() == 0

    @pytest.mark.asyncio
    async def test_never_goes_backwards(self):
        """A stale replica cannot move the observed block back."""
        session = mock_http_session((200, meta(100)), (200, meta(90)), (200, meta(101)))
        client = GraphIndexerStatusClient(session, "http://indexer/graphql")

        assert [await client.get_indexed_block() for _ in range(3)] == [100, 100, 101]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,payload",
        [
            (503, {}),
            (200, {"errors": [{"message": "indexer unavailable"}]}),
            (200, {"data": {"_meta": {"block": {}}}}),
        ],
    )
    async def test_bad_responses_are_transient(self, status, payload):
        session = mock_http_session((status, payload))
        client = GraphIndexerStatusClient(session, "http://indexer/graphql")

        with pytest.raises(TransientFetchError):
            await client.get_indexed_block()

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self):
        session = MagicMock()
        session.post = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client = GraphIndexerStatusClient(session, "http://indexer/graphql")

        with pytest.raises(TransientFetchError):
            await client.get_indexed_block()
