"""
Base interface over a storage connector.

The interface owns the calling conventions callers rely on: every public
operation returns a Response envelope and never raises.
"""
from __future__ import annotations

import logging
import time
from abc import ABC
from typing import Any, Awaitable, Callable, Optional

from s3_bridge.core.base_class.base_connectors import BaseConnector
from s3_bridge.core.errors import ErrorCode, S3BridgeError
from s3_bridge.models.response_model import ErrorResponse, Response
from s3_bridge.utils.logging import get_logger as default_get_logger


class BaseInterface(ABC):
    """
    Base class for client interfaces.

    Tracked operations are timed and logged. An S3BridgeError escaping an
    operation becomes an ErrorResponse with its own code; anything else
    becomes unexpected_error carrying the exception type.
    """

    def __init__(
        self,
        connector: BaseConnector,
        name: Optional[str] = None,
        get_logger: Optional[Callable[[], logging.Logger]] = None,
    ):
        """
        Args:
            connector: connector that performs the signed requests
            name: interface name used in log lines (defaults to connector name)
            get_logger: logger factory
        """
        self._connector = connector
        self._name = name or connector.name
        self.logger = (get_logger or default_get_logger)()

    @property
    def name(self) -> str:
        return self._name

    async def _execute_with_tracking(
        self,
        operation_name: str,
        operation: Callable[..., Awaitable[Response]],
        *args: Any,
        **kwargs: Any,
    ) -> Response:
        """
        Run an operation, timing it and converting escaped exceptions.

        Args:
            operation_name: name used in log lines and error data
            operation: async callable returning a Response
            *args: positional arguments for operation
            **kwargs: keyword arguments for operation
        """
        start_time = time.perf_counter()
        try:
            result = await operation(*args, **kwargs)
        except S3BridgeError as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.warning(f"{self._name}.{operation_name} rejected after {duration_ms:.1f}ms: {e}")
            return ErrorResponse.from_exception(e)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.exception(f"{self._name}.{operation_name} failed after {duration_ms:.1f}ms: {e}")
            return ErrorResponse(
                status_code=500,
                error_code=ErrorCode.UNEXPECTED_ERROR.value,
                error_message=f"Unexpected error in {operation_name}: {e}",
                error_data={"operation": operation_name, "exception": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        if isinstance(result, ErrorResponse):
            self.logger.debug(
                f"{self._name}.{operation_name} -> {result.error_code} ({result.status_code}) in {duration_ms:.1f}ms"
            )
        else:
            self.logger.debug(f"{self._name}.{operation_name} completed in {duration_ms:.1f}ms")
        return result

    # Lifecycle, delegated to the connector

    async def initialize(self) -> None:
        await self._connector.initialize()

    async def shutdown(self) -> None:
        await self._connector.shutdown()

    async def health_check(self) -> bool:
        return await self._connector.health_check()

    def is_healthy(self) -> bool:
        return self._connector.is_healthy()
