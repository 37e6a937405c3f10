"""
State and behaviour shared by the three adapter shapes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from adapters.arn import format_scope, parse_arn
from adapters.context import Context
from adapters.errors import wrap_aws_error
from adapters.limit import LimitBucket
from sdp import AdapterMetadata, ErrorType, Item, QueryError

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT = 100


@dataclass
class Adapter:
    """Common fields.  Subclasses add the callables that do the real work.

    ``client`` is whatever object the callables expect, normally a boto3
    client.  It is never called directly by the engine.
    """

    item_type: str = ""
    client: Any = None
    account_id: str = ""
    region: str = ""
    limit: Optional[LimitBucket] = None
    metadata: Optional[AdapterMetadata] = None

    @property
    def type(self) -> str:
        return self.item_type

    def name(self) -> str:
        return f"{self.item_type}-adapter"

    def scopes(self) -> list[str]:
        return [format_scope(self.account_id, self.region)]

    def weight(self) -> int:
        return DEFAULT_WEIGHT

    def validate(self) -> None:
        if not self.item_type:
            raise ValueError("item_type is empty")

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _check_scope(self, scope: str) -> None:
        if scope not in self.scopes():
            raise self._error(QueryError(
                ErrorType.NOSCOPE,
                f"requested scope {scope} does not match adapter scope {self.scopes()[0]}",
                scope=scope,
            ))

    def _wait(self, ctx: Context, scope: str) -> None:
        """Block on the shared rate limit (if any) before an API call."""
        ctx.raise_if_cancelled(scope)
        if self.limit is not None:
            try:
                self.limit.wait(ctx)
            except QueryError as exc:
                raise self._error(exc, scope) from None

    def _error(self, exc: Exception, scope: Optional[str] = None) -> QueryError:
        err = wrap_aws_error(exc, scope)
        if not err.source_name:
            err.source_name = self.name()
        if not err.item_type:
            err.item_type = self.item_type
        return err

    def _validate_item(self, item: Item, scope: str) -> Item:
        try:
            item.validate()
        except ValueError as exc:
            raise self._error(QueryError(ErrorType.OTHER, str(exc)), scope) from exc
        return item

    def _resource_id_from_arn(self, scope: str, query: str) -> str:
        """Parse *query* as an ARN in *scope* and return its resource ID."""
        try:
            arn = parse_arn(query)
        except ValueError as exc:
            raise self._error(QueryError(ErrorType.OTHER, str(exc)), scope) from exc

        if arn.scope != scope:
            raise self._error(QueryError(
                ErrorType.NOSCOPE,
                f"ARN scope {arn.scope} does not match request scope {scope}",
                scope=scope,
            ))
        return arn.resource_id
