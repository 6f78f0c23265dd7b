"""
Usage tracking for one streaming request.

The tracker observes the normalized event sequence, keeps the token and
cost totals, and writes them to the session ledger exactly once when the
stream completes.
"""

from typing import Optional
import logging

from ..config.settings import ModelPricing, UsagePolicy
from ..core.normalization.usage import calculate_usage_cost
from ..models.events import EventType, ProviderEvent, TokenUsage
from ..models.session import Session, SessionUsage
from ..session.ledger import LedgerError, LedgerWriteError, SessionLedger

logger = logging.getLogger(__name__)


class UsageTracker:
    """
    Accumulates usage reports according to a backend's ``UsagePolicy``.

    With ``OVERWRITE`` every report replaces the previous one, because the
    backend reports running totals. With ``SUM`` reports are added together.
    A ``finish`` event repeats the last snapshot and is only used when no
    ``usage`` event was seen.
    """

    def __init__(self, policy: UsagePolicy = UsagePolicy.OVERWRITE,
                 pricing: Optional[ModelPricing] = None, provider: Optional[str] = None):
        self.policy = policy
        self.pricing = pricing
        self.provider = provider
        self._usage: Optional[TokenUsage] = None
        self._committed = False

    @property
    def has_usage(self) -> bool:
        return self._usage is not None

    @property
    def committed(self) -> bool:
        return self._committed

    def observe(self, event: ProviderEvent) -> None:
        """Record the usage carried by ``event``, if any."""
        if event.usage is None:
            return
        if event.type == EventType.USAGE:
            if self._usage is None or self.policy == UsagePolicy.OVERWRITE:
                self._usage = event.usage
            else:
                self._usage = self._usage + event.usage
        elif event.type == EventType.FINISH and self._usage is None:
            self._usage = event.usage

    def snapshot(self) -> TokenUsage:
        """
        Current totals, with cost filled in from pricing when the backend omitted it.

        Returns:
            TokenUsage (all zeros if nothing was observed)
        """
        usage = self._usage or TokenUsage()
        cost = usage.cost
        if cost is None and self.pricing is not None:
            cost = calculate_usage_cost(
                usage,
                self.pricing.input_cost_per_1k_tokens,
                self.pricing.output_cost_per_1k_tokens,
                self.pricing.cached_input_cost_per_1k_tokens,
                self.pricing.cache_creation_input_cost_per_1k_tokens,
                cache_included_in_prompt=self.provider != "anthropic"
            )
        return TokenUsage(
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            cost=cost,
            cache_read_tokens=usage.cache_read_tokens,
            cache_creation_tokens=usage.cache_creation_tokens,
        )

    def to_session_usage(self, session: Session) -> SessionUsage:
        """
        Build the values to persist for ``session``.

        Token counts describe the size of the latest exchange and replace the
        stored ones; cost is cumulative over the session and is added.
        """
        usage = self.snapshot()
        return SessionUsage(
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            cost=session.cost + (usage.cost or 0.0),
            summary_message_id=session.summary_message_id,
        )

    async def commit(self, ledger: SessionLedger, session_id: str) -> Optional[Session]:
        """
        Write the totals to the ledger.

        Performs at most one update per tracker. Nothing is written when no
        usage was observed.

        Raises:
            SessionNotFoundError: If the session does not exist
            LedgerError: If reading or updating the session fails; the tracker
                stays uncommitted
        """
        if self._committed or self._usage is None:
            return None

        try:
            session = await ledger.get(session_id)
            totals = self.to_session_usage(session)
            updated = await ledger.update(
                session_id,
                title=session.title,
                prompt_tokens=totals.prompt_tokens,
                completion_tokens=totals.completion_tokens,
                summary_message_id=totals.summary_message_id,
                cost=totals.cost,
                todos=session.todos,
            )
        except LedgerError:
            raise
        except Exception as e:
            raise LedgerWriteError(f"Failed to persist usage for session {session_id}: {e}") from e

        self._committed = True
        logger.debug(
            f"Persisted usage for session {session_id}: prompt_tokens={totals.prompt_tokens} "
            f"completion_tokens={totals.completion_tokens} cost={totals.cost}"
        )
        return updated
