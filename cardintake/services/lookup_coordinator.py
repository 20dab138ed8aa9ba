"""
Debounced, supersedable lookups.

Each logical input field (barcode, card name/set/number) owns one
DebouncedCall. The call moves through

    IDLE -> PENDING (debounce sleep) -> IN_FLIGHT (network) -> RESOLVED | ABORTED

and any new input cancels whatever task is active, pending or in flight,
before scheduling a fresh one. A cancelled task never delivers its result,
so a slow stale response cannot overwrite a newer one (last input wins).

INVARIANTS:
- At most one task per DebouncedCall is live at a time
- Results are delivered only by the most recently submitted task
- The cert memo suppresses only a repeat of the most recent cert
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from cardintake.config import PSA_DEBOUNCE_SECONDS, TCG_DEBOUNCE_SECONDS, settings
from cardintake.models.lookup import LookupResult, PSAFetchResult
from cardintake.models.tcg_product import TCGProduct
from cardintake.parsers.psa_record import is_psa_cert_number, parse_psa_record
from cardintake.services.tcg_search import MIN_QUERY_LENGTH, RawSearch, search_products

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallState(str, Enum):
    """Lifecycle of a debounced call."""

    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RESOLVED = "resolved"
    ABORTED = "aborted"


class DebouncedCall(Generic[T]):
    """
    Debounce an async call and supersede stale invocations.

    Args:
        func: Async callable to run after the quiet period
        delay: Seconds of quiet required before func runs
        on_result: Optional callback receiving each delivered result
    """

    def __init__(
        self,
        func: Callable[..., Awaitable[T]],
        delay: float,
        on_result: Callable[[T], None] | None = None,
    ) -> None:
        self._func = func
        self.delay = delay
        self._on_result = on_result
        self._task: asyncio.Task[T] | None = None
        self._generation = 0
        self._state = CallState.IDLE
        self.result: T | None = None

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state in (CallState.PENDING, CallState.IN_FLIGHT)

    def submit(self, *args: Any, delay: float | None = None) -> asyncio.Task[T]:
        """
        Schedule func(*args) after the debounce delay.

        Cancels any pending or in-flight invocation first. Must be called
        from a running event loop.

        Args:
            args: Arguments for func
            delay: Override for this invocation's quiet period (0 runs at once)
        """
        self.cancel()
        self._generation += 1
        self._state = CallState.PENDING
        wait_for = self.delay if delay is None else delay
        self._task = asyncio.create_task(self._run(self._generation, wait_for, args))
        return self._task

    async def _run(self, generation: int, delay: float, args: tuple[Any, ...]) -> T:
        try:
            await asyncio.sleep(delay)
            self._state = CallState.IN_FLIGHT
            result = await self._func(*args)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._state = CallState.ABORTED
            raise
        except Exception:
            if generation == self._generation:
                self._state = CallState.IDLE
            raise

        self._state = CallState.RESOLVED
        self.result = result
        if self._on_result is not None:
            self._on_result(result)
        return result

    def cancel(self) -> None:
        """Abort the pending or in-flight invocation, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self._state = CallState.ABORTED

    async def wait(self) -> T | None:
        """
        Wait for the current invocation.

        Returns:
            Its result, or None if it was cancelled or nothing was submitted
        """
        if self._task is None:
            return None
        try:
            return await self._task
        except asyncio.CancelledError:
            # Re-raise if we ourselves are being cancelled, not the awaited task
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None


def to_lookup_result(fetched: PSAFetchResult) -> LookupResult:
    """Parse a fetched certificate into a LookupResult."""
    if not fetched.success or fetched.record is None:
        return LookupResult(
            success=False,
            error=fetched.error or "PSA certification not found",
            failure_kind=fetched.failure_kind,
        )
    return LookupResult(
        success=True,
        identity=parse_psa_record(fetched.record),
        record=fetched.record,
    )


class PSALookupCoordinator:
    """
    Drives certificate lookups from barcode input.

    Owns the debounce timer and the `last_key` memo for one intake form.
    `last_key` suppresses a repeat lookup of the most recently fetched cert;
    it is not a cache and forgets everything but that one key.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[PSAFetchResult]],
        delay: float = PSA_DEBOUNCE_SECONDS,
        on_result: Callable[[LookupResult], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self.last_key: str | None = None
        self._call: DebouncedCall[LookupResult | None] = DebouncedCall(
            self.lookup, delay, on_result=self._deliver
        )
        self._on_result = on_result
        self.error: str | None = None

    @property
    def state(self) -> CallState:
        return self._call.state

    def _deliver(self, result: LookupResult | None) -> None:
        if result is None:
            return
        self.error = None if result.success else result.error
        if self._on_result is not None:
            self._on_result(result)

    async def lookup(self, cert_number: str) -> LookupResult | None:
        """
        Look up a certificate immediately.

        Returns:
            LookupResult, or None when cert_number is empty or was the last key fetched
        """
        cert_number = (cert_number or "").strip()
        if not cert_number or cert_number == self.last_key:
            return None

        logger.info("Looking up PSA cert %s", cert_number)
        result = to_lookup_result(await self._fetch(cert_number))

        # Only a completed fetch is remembered; transient failures stay retryable
        self.last_key = None if result.retryable else cert_number
        return result

    def on_barcode_change(self, barcode: str) -> asyncio.Task[LookupResult | None] | None:
        """
        React to a change of the barcode field.

        Cert-shaped input schedules a debounced lookup; anything else cancels
        the pending lookup and forgets the last key.
        """
        self.error = None
        barcode = (barcode or "").strip()
        if is_psa_cert_number(barcode):
            return self._call.submit(barcode)
        self._call.cancel()
        self.last_key = None
        return None

    def retry(self, barcode: str) -> asyncio.Task[LookupResult | None] | None:
        """Re-run the lookup for barcode right away, bypassing the memo."""
        self.last_key = None
        barcode = (barcode or "").strip()
        if not barcode:
            self._call.cancel()
            return None
        return self._call.submit(barcode, delay=0)

    def reset(self) -> None:
        """Cancel pending work and clear the memo and error."""
        self._call.cancel()
        self.last_key = None
        self.error = None

    async def wait(self) -> LookupResult | None:
        return await self._call.wait()


class ProductSearchCoordinator:
    """
    Drives catalog product searches from name/set/number input.

    Keeps the latest delivered products; names shorter than two characters
    clear them without searching.
    """

    def __init__(
        self,
        raw_search: RawSearch,
        delay: float = TCG_DEBOUNCE_SECONDS,
        limit: int | None = None,
        on_result: Callable[[list[TCGProduct]], None] | None = None,
    ) -> None:
        self._raw_search = raw_search
        self.limit = limit if limit is not None else settings.tcg_search_limit
        self.products: list[TCGProduct] = []
        self._on_result = on_result
        self._call: DebouncedCall[list[TCGProduct]] = DebouncedCall(
            self._search, delay, on_result=self._deliver
        )

    @property
    def state(self) -> CallState:
        return self._call.state

    def _deliver(self, products: list[TCGProduct]) -> None:
        self.products = products
        if self._on_result is not None:
            self._on_result(products)

    async def _search(self, card_name: str, set_name: str, card_number: str) -> list[TCGProduct]:
        return await search_products(
            self._raw_search, card_name, set_name, card_number, self.limit
        )

    def on_fields_change(
        self, card_name: str, set_name: str = "", card_number: str = ""
    ) -> asyncio.Task[list[TCGProduct]] | None:
        """React to a change of the card name, set name, or card number fields."""
        if not card_name or len(card_name.strip()) < MIN_QUERY_LENGTH:
            self._call.cancel()
            self.products = []
            return None
        return self._call.submit(card_name, set_name or "", card_number or "")

    def search_now(
        self, card_name: str, set_name: str = "", card_number: str = ""
    ) -> asyncio.Task[list[TCGProduct]]:
        """Search without waiting for the quiet period, superseding any pending search."""
        return self._call.submit(card_name, set_name or "", card_number or "", delay=0)

    def reset(self) -> None:
        self._call.cancel()
        self.products = []

    async def wait(self) -> list[TCGProduct] | None:
        return await self._call.wait()
