"""
Unit tests for utils module.

Tests endpoint ID derivation and the shutdown signal handler.
"""

import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mqtt_matter_bridge.utils import create_endpoint_id, signal_handler


class TestCreateEndpointId:
    """Tests for create_endpoint_id"""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Desk Plug", "desk-plug"),
            ("Living Room TV", "living-room-tv"),
            ("lamp", "lamp"),
            ("Two  Spaces\tand tab", "two-spaces-and-tab"),
        ],
    )
    def test_lowercases_and_hyphenates(self, name, expected):
        """Test whitespace runs become a single hyphen"""
        assert create_endpoint_id(name) == expected


class TestSignals:
    """Tests for the shutdown signal handler"""

    @pytest.mark.asyncio
    async def test_signal_handler_stops_services(self):
        """Test the signal handler stops the status API and bridge and cancels tasks"""
        pending = asyncio.create_task(asyncio.sleep(10))
        with patch("mqtt_matter_bridge.utils.g") as mock_g:
            mock_g.loop = asyncio.get_running_loop()
            mock_g.status_api = MagicMock()
            mock_g.status_api.stop = AsyncMock()
            mock_g.bridge = MagicMock()
            mock_g.bridge.stop = AsyncMock()
            mock_g.tasks = [pending]

            signal_handler(signal.SIGTERM)
            cleanup = mock_g.tasks[-1]
            await cleanup

        mock_g.status_api.stop.assert_awaited_once()
        mock_g.bridge.stop.assert_awaited_once()
        for _ in range(3):
            await asyncio.sleep(0)
        assert pending.cancelled()
