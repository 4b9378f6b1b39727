"""Method-call channel that exposes the bridge to the application layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from .models import UsageWindow
from .normalization import argument, coerce_millis

if TYPE_CHECKING:
    from .bridge import UsageBridge

logger = logging.getLogger(__name__)

CHANNEL_NAME = "subscription_alert/usage_stats"


class ResultKind(str, Enum):
    SUCCESS = "success"
    NOT_IMPLEMENTED = "not_implemented"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class MethodCall:
    method: str
    arguments: Any = None


@dataclass(slots=True, frozen=True)
class MethodResult:
    """Reply to a method call."""

    kind: ResultKind
    value: Any = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Any = None

    @classmethod
    def success(cls, value: Any) -> "MethodResult":
        return cls(ResultKind.SUCCESS, value=value)

    @classmethod
    def not_implemented(cls) -> "MethodResult":
        return cls(ResultKind.NOT_IMPLEMENTED)

    @classmethod
    def error(
        cls, code: str, message: Optional[str] = None, details: Any = None
    ) -> "MethodResult":
        return cls(
            ResultKind.ERROR,
            error_code=code,
            error_message=message,
            error_details=details,
        )

    @property
    def is_success(self) -> bool:
        return self.kind is ResultKind.SUCCESS


Handler = Callable[[MethodCall], Any]


@dataclass(slots=True)
class UsageStatsChannel:
    """Dispatches calls by method name to the bridge operations."""

    bridge: "UsageBridge"
    name: str = CHANNEL_NAME
    _handlers: dict[str, Handler] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._handlers = {
            "hasUsagePermission": self._has_usage_permission,
            "requestUsagePermission": self._request_usage_permission,
            "getAppUsage": self._get_app_usage,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._handlers)

    def handle(self, call: MethodCall) -> MethodResult:
        handler = self._handlers.get(call.method)
        if handler is None:
            logger.info("Method %r is not implemented on %s.", call.method, self.name)
            return MethodResult.not_implemented()
        try:
            return MethodResult.success(handler(call))
        except Exception as exc:
            logger.exception("Method %s failed.", call.method)
            return MethodResult.error("UNAVAILABLE", str(exc))

    def invoke(self, method: str, arguments: Any = None) -> MethodResult:
        return self.handle(MethodCall(method, arguments))

    def _has_usage_permission(self, call: MethodCall) -> bool:
        return self.bridge.has_usage_permission()

    def _request_usage_permission(self, call: MethodCall) -> bool:
        self.bridge.request_usage_permission()
        return True

    def _get_app_usage(self, call: MethodCall) -> list[dict[str, Any]]:
        window = UsageWindow.from_millis(
            coerce_millis(argument(call.arguments, "startTime")),
            coerce_millis(argument(call.arguments, "endTime")),
        )
        return [record.to_payload() for record in self.bridge.usage_for(window)]
