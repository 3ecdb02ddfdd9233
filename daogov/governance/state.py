"""
Proposal Repository

In-memory store for a proposal module: the proposal records, the sequential
proposal id counter and the ballot ledger.

Records are handed out as deep copies. An action mutates its copy and only
calls ``save`` once everything has succeeded; ``transaction()`` additionally
rolls back ballot writes and id allocation if the action raises.
"""

import copy
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from ..constants import DEFAULT_LIMIT
from .ballots import BallotLedger
from .errors import NoSuchProposalError


class ProposalRepository:
    """
    Owns the proposals of a single module.

    Ids start at 1 and increase by one per created proposal.
    """

    def __init__(self) -> None:
        self._proposals: Dict[int, object] = {}
        self._proposal_count: int = 0
        self.ballots = BallotLedger()

    # ── Id counter ────────────────────────────────────────────────────

    @property
    def proposal_count(self) -> int:
        return self._proposal_count

    def next_proposal_id(self) -> int:
        return self._proposal_count + 1

    def advance_proposal_id(self) -> int:
        """Allocate and return the next proposal id."""
        self._proposal_count += 1
        return self._proposal_count

    # ── Records ───────────────────────────────────────────────────────

    def load(self, proposal_id: int):
        """Working copy of the proposal; raises NoSuchProposalError."""
        try:
            record = self._proposals[proposal_id]
        except KeyError:
            raise NoSuchProposalError(proposal_id) from None
        return copy.deepcopy(record)

    def may_load(self, proposal_id: int):
        if proposal_id not in self._proposals:
            return None
        return self.load(proposal_id)

    def save(self, proposal_id: int, record) -> None:
        self._proposals[proposal_id] = copy.deepcopy(record)

    def __contains__(self, proposal_id: int) -> bool:
        return proposal_id in self._proposals

    def __len__(self) -> int:
        return len(self._proposals)

    def range(
        self,
        start_after: Optional[int] = None,
        start_before: Optional[int] = None,
        descending: bool = False,
        limit: Optional[int] = DEFAULT_LIMIT,
    ) -> List[Tuple[int, object]]:
        """
        ``(id, record)`` pairs with ``start_after < id < start_before``,
        ascending by id unless *descending*.
        """
        ids = sorted(self._proposals, reverse=descending)
        if start_after is not None:
            ids = [i for i in ids if i > start_after]
        if start_before is not None:
            ids = [i for i in ids if i < start_before]
        if limit is not None:
            ids = ids[:limit]
        return [(i, copy.deepcopy(self._proposals[i])) for i in ids]

    # ── Transactions ──────────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["ProposalRepository"]:
        """
        Run one action atomically: on error, proposals, ballots and the id
        counter are restored to their state on entry.
        """
        proposals = dict(self._proposals)
        ballots = self.ballots.snapshot()
        count = self._proposal_count
        try:
            yield self
        except BaseException:
            self._proposals = proposals
            self.ballots.restore(ballots)
            self._proposal_count = count
            raise
