"""
Uniform pagination over AWS list/describe calls.

Every paginator exposes ``has_more_pages()`` and ``next_page(ctx)`` so the
engine can wait on the rate limiter and check for cancellation between
pages.  Most AWS APIs use an opaque continuation token (``NextToken``,
``Marker``, ``NextMarker`` ...) and are covered by :class:`TokenPaginator`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from adapters.context import Context

logger = logging.getLogger(__name__)


class Paginator:
    """Base contract."""

    def has_more_pages(self) -> bool:
        raise NotImplementedError

    def next_page(self, ctx: Context) -> dict:
        raise NotImplementedError

    def pages(self, ctx: Context):
        """Yield every remaining page, checking *ctx* before each fetch."""
        while self.has_more_pages():
            ctx.raise_if_cancelled()
            yield self.next_page(ctx)


class TokenPaginator(Paginator):
    """Follow a continuation token from one response into the next request.

    *call* is a bound client method such as ``ec2.describe_addresses``.
    *input_token* is the request parameter name and *output_token* the
    response key; they differ for some APIs (e.g. RDS ``Marker`` in,
    ``Marker`` out vs. CloudFront ``Marker`` in, ``DistributionList.NextMarker``
    out).  Dotted *output_token* paths walk nested response dicts.

    Pagination stops when the response carries no token, or when the token
    equals the one just sent.
    """

    def __init__(
        self,
        call: Callable[..., dict],
        params: Optional[dict] = None,
        input_token: str = "NextToken",
        output_token: Optional[str] = None,
    ) -> None:
        self._call = call
        self._params = dict(params or {})
        self._input_token = input_token
        self._output_token = output_token or input_token
        self._token: Any = self._params.get(input_token)
        self._done = False

    def has_more_pages(self) -> bool:
        return not self._done

    def next_page(self, ctx: Context) -> dict:
        ctx.raise_if_cancelled()
        if self._done:
            raise RuntimeError("no more pages")

        params = dict(self._params)
        if self._token:
            params[self._input_token] = self._token

        response = self._call(**params)

        next_token = _lookup(response, self._output_token)
        if not next_token:
            self._done = True
        elif next_token == self._token:
            logger.debug(
                "Paginator received repeated %s, stopping", self._output_token,
            )
            self._done = True
        self._token = next_token
        return response


def _lookup(response: dict, path: str) -> Any:
    current: Any = response
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current
