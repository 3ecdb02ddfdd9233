"""
Proposal Modules

Host entry points for a DAO's proposal module. Each action is one
synchronous call that loads the state it needs, computes the new state and
commits it in one step; a failed action raises and leaves no trace.

  - SingleChoiceProposalModule:   yes / no / abstain proposals
  - MultipleChoiceProposalModule: proposals with 2..20 options plus
                                  "None of the above"

Voting power and execution are supplied by the host:
    voting_power_fn(address, height) -> int
    total_power_fn(height)           -> int
    execute_fn(proposal_id, msgs)    raising signals failure
"""

import json
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

from ..constants import DEFAULT_LIMIT, MAX_PROPOSAL_SIZE
from ..exceptions import ConfigurationError
from ..logger import get_logger
from .arithmetic import check_uint
from .ballots import Ballot, VoteInfo
from .choices import MultipleChoiceOption, VotingStrategy, into_checked
from .errors import (
    InvalidProposalError,
    InvalidVoteError,
    NotExpiredError,
    NotPassedError,
    ProposalTooLargeError,
    UnauthorizedError,
    WrongCloseStatusError,
)
from .expiration import BlockInfo, Duration, duration_from_dict, validate_voting_period
from .hooks import (
    HookRegistry,
    HookSubscriber,
    new_proposal_hooks,
    new_vote_hooks,
    proposal_status_changed_hooks,
)
from .multiple_choice import MultipleChoiceProposal
from .proposals import SingleChoiceProposal
from .state import ProposalRepository
from .status import (
    Closed,
    Executed,
    ExecutionFailed,
    Open,
    Passed,
    Rejected,
    Status,
    Vetoed,
    VetoTimelock,
)
from .threshold import Threshold, threshold_from_dict
from .veto import (
    InvalidProposalStatusError,
    NoVetoConfigurationError,
    TimelockedError,
    TimelockExpiredError,
    VetoConfig,
)
from .votes import MultipleChoiceVote, Vote

logger = get_logger(__name__)

VotingPowerFn = Callable[[str, int], int]
TotalPowerFn = Callable[[int], int]
ExecuteFn = Callable[[int, List[Any]], Any]


# ══════════════════════════════════════════════════════════════════════
#  CONFIG
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProposalConfig:
    """
    Module configuration. Changing it only affects proposals created
    afterwards.

    Fields:
        dao:                  Address allowed to update config and hooks
        max_voting_period:    Voting window of new proposals
        threshold:            Pass / fail policy (single choice modules)
        voting_strategy:      Quorum policy (multiple choice modules)
        min_voting_period:    Proposals cannot pass before this elapses
        only_members_execute: Only addresses with voting power may execute
        allow_revoting:       Voters may change their vote until expiration
        close_proposal_on_execution_failure:
                              A failing payload marks the proposal
                              ExecutionFailed instead of aborting execute
        veto:                 Optional veto timelock
    """
    dao: str
    max_voting_period: Duration
    threshold: Optional[Threshold] = None
    voting_strategy: Optional[VotingStrategy] = None
    min_voting_period: Optional[Duration] = None
    only_members_execute: bool = True
    allow_revoting: bool = False
    close_proposal_on_execution_failure: bool = True
    veto: Optional[VetoConfig] = None

    def validate(self) -> None:
        if not self.dao:
            raise ConfigurationError("DAO address is required")
        if self.threshold is None and self.voting_strategy is None:
            raise ConfigurationError("Either a threshold or a voting strategy is required")
        if self.threshold is not None:
            self.threshold.validate()
        if self.voting_strategy is not None:
            self.voting_strategy.validate()
        validate_voting_period(self.min_voting_period, self.max_voting_period)
        if self.veto is not None:
            self.veto.validate(self.max_voting_period)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dao": self.dao,
            "maxVotingPeriod": self.max_voting_period.to_dict(),
            "threshold": self.threshold.to_dict() if self.threshold else None,
            "votingStrategy": self.voting_strategy.to_dict() if self.voting_strategy else None,
            "minVotingPeriod": (
                self.min_voting_period.to_dict() if self.min_voting_period else None
            ),
            "onlyMembersExecute": self.only_members_execute,
            "allowRevoting": self.allow_revoting,
            "closeProposalOnExecutionFailure": self.close_proposal_on_execution_failure,
            "veto": self.veto.to_dict() if self.veto else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalConfig":
        threshold = data.get("threshold")
        strategy = data.get("votingStrategy")
        min_period = data.get("minVotingPeriod")
        veto = data.get("veto")
        return cls(
            dao=data["dao"],
            max_voting_period=duration_from_dict(data["maxVotingPeriod"]),
            threshold=threshold_from_dict(threshold) if threshold else None,
            voting_strategy=VotingStrategy.from_dict(strategy) if strategy else None,
            min_voting_period=duration_from_dict(min_period) if min_period else None,
            only_members_execute=bool(data.get("onlyMembersExecute", True)),
            allow_revoting=bool(data.get("allowRevoting", False)),
            close_proposal_on_execution_failure=bool(
                data.get("closeProposalOnExecutionFailure", True)
            ),
            veto=VetoConfig.from_dict(veto) if veto else None,
        )


# ══════════════════════════════════════════════════════════════════════
#  SHARED HOST
# ══════════════════════════════════════════════════════════════════════

class ProposalModuleBase:
    """
    Actions and queries shared by both proposal kinds. Subclasses build the
    proposal record, parse votes and pick the messages to execute.
    """

    kind = "proposal"

    def __init__(
        self,
        config: ProposalConfig,
        voting_power_fn: VotingPowerFn,
        total_power_fn: TotalPowerFn,
        execute_fn: Optional[ExecuteFn] = None,
    ):
        self._check_config(config)
        self._config = config
        self._voting_power = voting_power_fn
        self._total_power = total_power_fn
        self._execute = execute_fn
        self.repository = ProposalRepository()
        self.proposal_hooks = HookRegistry("proposal_hooks")
        self.vote_hooks = HookRegistry("vote_hooks")

    def _check_config(self, config: ProposalConfig) -> None:
        config.validate()

    # ── Subclass seams ────────────────────────────────────────────────

    def _build_proposal(self, proposal_id, sender, block, title, description, payload, total_power):
        raise NotImplementedError

    def _parse_vote(self, proposal, vote):
        raise NotImplementedError

    def _messages_to_execute(self, proposal) -> List[Any]:
        raise NotImplementedError

    # ── Voting power ──────────────────────────────────────────────────

    def _power_at(self, address: str, height: int) -> int:
        return check_uint(self._voting_power(address, height), "voting power")

    # ── Actions ───────────────────────────────────────────────────────

    def propose(
        self,
        sender: str,
        block: BlockInfo,
        title: str,
        description: str,
        payload,
    ) -> int:
        """Create a proposal and return its id."""
        with self.repository.transaction() as repo:
            total_power = check_uint(self._total_power(block.height), "total power")
            proposal_id = repo.next_proposal_id()
            proposal = self._build_proposal(
                proposal_id, sender, block, title, description, payload, total_power
            )
            # Handles proposals that expire in the block they are created.
            proposal.update_status(block)

            repo.advance_proposal_id()
            size = len(json.dumps(proposal.to_dict(), default=str).encode())
            if size > MAX_PROPOSAL_SIZE:
                raise ProposalTooLargeError(size, MAX_PROPOSAL_SIZE)
            repo.save(proposal_id, proposal)

        logger.info(
            f"Proposal #{proposal_id} created by {sender}: '{title}' "
            f"({proposal.expiration}, status={proposal.status})"
        )
        new_proposal_hooks(self.proposal_hooks, proposal_id, sender)
        return proposal_id

    def vote(
        self,
        sender: str,
        block: BlockInfo,
        proposal_id: int,
        vote,
        rationale: Optional[str] = None,
    ) -> Status:
        """Cast or change *sender*'s ballot. Returns the updated status."""
        with self.repository.transaction() as repo:
            proposal = repo.load(proposal_id)
            vote = self._parse_vote(proposal, vote)
            power = self._power_at(sender, proposal.start_height)

            old_status = proposal.status
            repo.ballots.cast(proposal, sender, power, vote, rationale, block)
            new_status = proposal.update_status(block)
            repo.save(proposal_id, proposal)

        logger.debug(f"Vote on proposal #{proposal_id}: {sender} → {vote} (power={power})")
        proposal_status_changed_hooks(
            self.proposal_hooks, proposal_id, str(old_status), str(new_status)
        )
        new_vote_hooks(self.vote_hooks, proposal_id, sender, str(vote))
        return new_status

    def update_rationale(self, sender: str, proposal_id: int, rationale: Optional[str]) -> Ballot:
        with self.repository.transaction() as repo:
            return replace(repo.ballots.update_rationale(proposal_id, sender, rationale))

    def execute(self, sender: str, block: BlockInfo, proposal_id: int) -> Status:
        """
        Execute a passed proposal, or a timelocked one if *sender* is the
        vetoer and early execution is enabled.
        """
        config = self._config
        with self.repository.transaction() as repo:
            proposal = repo.load(proposal_id)

            sender_can_execute = True
            if config.only_members_execute:
                sender_can_execute = self._power_at(sender, proposal.start_height) > 0

            # Proposals that passed during voting stay executable after
            # expiration.
            proposal.update_status(block)
            old_status = proposal.status
            if isinstance(old_status, Passed):
                if not sender_can_execute:
                    raise UnauthorizedError(f"{sender} may not execute proposal #{proposal_id}")
            elif isinstance(old_status, VetoTimelock):
                veto = proposal.veto
                if veto is None:
                    raise NoVetoConfigurationError("Proposal is not vetoable")
                if veto.vetoer != sender:
                    if sender_can_execute:
                        raise TimelockedError(f"Proposal #{proposal_id} is timelocked")
                    raise UnauthorizedError(f"{sender} may not execute proposal #{proposal_id}")
                veto.check_early_execute_enabled()
            else:
                raise NotPassedError(f"Proposal #{proposal_id} is not passed ({old_status})")

            msgs = self._messages_to_execute(proposal)
            if msgs and self._execute is None:
                raise ConfigurationError(
                    f"Proposal #{proposal_id} has messages but no execution sink is configured"
                )
            new_status: Status = Executed()
            if msgs:
                try:
                    self._execute(proposal_id, msgs)
                except Exception as e:
                    if not config.close_proposal_on_execution_failure:
                        raise
                    logger.warning(f"Proposal #{proposal_id} execution failed: {e}")
                    new_status = ExecutionFailed()

            proposal.transition_to(new_status, f"executed by {sender}")
            repo.save(proposal_id, proposal)

        proposal_status_changed_hooks(
            self.proposal_hooks, proposal_id, str(old_status), str(new_status)
        )
        return new_status

    def close(self, sender: str, block: BlockInfo, proposal_id: int) -> Status:
        """Close a rejected proposal."""
        with self.repository.transaction() as repo:
            proposal = repo.load(proposal_id)
            # Moves open proposals that have since expired to rejected.
            proposal.update_status(block)
            old_status = proposal.status
            if isinstance(old_status, Open):
                raise NotExpiredError(f"Proposal #{proposal_id} is still open")
            if not isinstance(old_status, Rejected):
                raise WrongCloseStatusError(
                    f"Only rejected proposals may be closed (#{proposal_id} is {old_status})"
                )
            proposal.transition_to(Closed(), f"closed by {sender}")
            repo.save(proposal_id, proposal)

        proposal_status_changed_hooks(
            self.proposal_hooks, proposal_id, str(old_status), str(proposal.status)
        )
        return proposal.status

    def veto(self, sender: str, block: BlockInfo, proposal_id: int) -> Status:
        """Veto a proposal during its timelock, or while open if allowed."""
        with self.repository.transaction() as repo:
            proposal = repo.load(proposal_id)
            proposal.update_status(block)
            old_status = proposal.status

            veto = proposal.veto
            if veto is None:
                raise NoVetoConfigurationError("Proposal is not vetoable")
            veto.check_is_vetoer(sender)

            if isinstance(old_status, Open):
                veto.check_veto_before_passed_enabled()
            elif isinstance(old_status, Passed):
                # With a veto configured, Passed means the timelock elapsed.
                raise TimelockExpiredError("Veto timelock has expired")
            elif isinstance(old_status, VetoTimelock):
                if old_status.expiration.is_expired(block):
                    raise TimelockExpiredError("Veto timelock has expired")
            else:
                raise InvalidProposalStatusError(
                    f"Proposal #{proposal_id} cannot be vetoed in status {old_status}"
                )

            proposal.transition_to(Vetoed(), f"vetoed by {sender}")
            repo.save(proposal_id, proposal)

        logger.warning(f"Proposal #{proposal_id} vetoed by {sender}")
        proposal_status_changed_hooks(
            self.proposal_hooks, proposal_id, str(old_status), str(proposal.status)
        )
        return proposal.status

    def update_config(self, sender: str, config: ProposalConfig) -> None:
        """Replace the module config. Only the DAO may call this."""
        self._check_dao(sender)
        self._check_config(config)
        self._config = config
        logger.info(f"{self.kind} module config updated by {sender}")

    # ── Hooks ─────────────────────────────────────────────────────────

    def _check_dao(self, sender: str) -> None:
        if sender != self._config.dao:
            raise UnauthorizedError(f"Only the DAO may do this, not {sender}")

    def add_proposal_hook(self, sender: str, address: str, subscriber: HookSubscriber) -> None:
        self._check_dao(sender)
        self.proposal_hooks.add_hook(address, subscriber)

    def remove_proposal_hook(self, sender: str, address: str) -> None:
        self._check_dao(sender)
        self.proposal_hooks.remove_hook(address)

    def add_vote_hook(self, sender: str, address: str, subscriber: HookSubscriber) -> None:
        self._check_dao(sender)
        self.vote_hooks.add_hook(address, subscriber)

    def remove_vote_hook(self, sender: str, address: str) -> None:
        self._check_dao(sender)
        self.vote_hooks.remove_hook(address)

    # ── Queries ───────────────────────────────────────────────────────

    def get_config(self) -> ProposalConfig:
        return self._config

    def get_proposal(self, proposal_id: int, block: BlockInfo):
        """The proposal with its status as of *block*. Nothing is written."""
        return self.repository.load(proposal_id).with_current_status(block)

    def list_proposals(
        self,
        block: BlockInfo,
        start_after: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list:
        limit = DEFAULT_LIMIT if limit is None else limit
        return [
            record.with_current_status(block)
            for _, record in self.repository.range(start_after=start_after, limit=limit)
        ]

    def reverse_proposals(
        self,
        block: BlockInfo,
        start_before: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list:
        limit = DEFAULT_LIMIT if limit is None else limit
        return [
            record.with_current_status(block)
            for _, record in self.repository.range(
                start_before=start_before, descending=True, limit=limit
            )
        ]

    def get_vote(self, proposal_id: int, voter: str) -> Optional[VoteInfo]:
        ballot = self.repository.ballots.get(proposal_id, voter)
        if ballot is None:
            return None
        return VoteInfo(voter, replace(ballot))

    def list_votes(
        self,
        proposal_id: int,
        start_after: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[VoteInfo]:
        limit = DEFAULT_LIMIT if limit is None else limit
        return [
            VoteInfo(info.voter, replace(info.ballot))
            for info in self.repository.ballots.list_votes(proposal_id, start_after, limit)
        ]

    def proposal_count(self) -> int:
        return self.repository.proposal_count

    def next_proposal_id(self) -> int:
        return self.repository.next_proposal_id()

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} dao={self._config.dao} "
            f"proposals={self.repository.proposal_count}>"
        )


# ══════════════════════════════════════════════════════════════════════
#  SINGLE CHOICE
# ══════════════════════════════════════════════════════════════════════

class SingleChoiceProposalModule(ProposalModuleBase):
    """Yes / no / abstain proposals carrying a list of messages."""

    kind = "single choice"

    def _check_config(self, config: ProposalConfig) -> None:
        if config.threshold is None:
            raise ConfigurationError("Single choice modules require a threshold")
        config.validate()

    def _build_proposal(self, proposal_id, sender, block, title, description, payload, total_power):
        config = self._config
        return SingleChoiceProposal(
            id=proposal_id,
            title=title,
            description=description,
            proposer=sender,
            start_height=block.height,
            min_voting_period=(
                config.min_voting_period.after(block) if config.min_voting_period else None
            ),
            expiration=config.max_voting_period.after(block),
            threshold=config.threshold,
            total_power=total_power,
            msgs=list(payload or []),
            allow_revoting=config.allow_revoting,
            veto=config.veto,
        )

    def _parse_vote(self, proposal, vote) -> Vote:
        try:
            return Vote.parse(vote)
        except (KeyError, ValueError) as e:
            raise InvalidVoteError(f"Invalid vote: {vote!r}") from e

    def _messages_to_execute(self, proposal: SingleChoiceProposal) -> List[Any]:
        return list(proposal.msgs)


# ══════════════════════════════════════════════════════════════════════
#  MULTIPLE CHOICE
# ══════════════════════════════════════════════════════════════════════

class MultipleChoiceProposalModule(ProposalModuleBase):
    """Proposals whose payload is a list of options; the winner executes."""

    kind = "multiple choice"

    def _check_config(self, config: ProposalConfig) -> None:
        if config.voting_strategy is None:
            raise ConfigurationError("Multiple choice modules require a voting strategy")
        config.validate()

    def _build_proposal(self, proposal_id, sender, block, title, description, payload, total_power):
        config = self._config
        options = [
            o if isinstance(o, MultipleChoiceOption) else MultipleChoiceOption(**o)
            for o in (payload or [])
        ]
        return MultipleChoiceProposal(
            id=proposal_id,
            title=title,
            description=description,
            proposer=sender,
            start_height=block.height,
            min_voting_period=(
                config.min_voting_period.after(block) if config.min_voting_period else None
            ),
            expiration=config.max_voting_period.after(block),
            choices=into_checked(options),
            voting_strategy=config.voting_strategy,
            total_power=total_power,
            allow_revoting=config.allow_revoting,
            veto=config.veto,
        )

    def _parse_vote(self, proposal: MultipleChoiceProposal, vote) -> MultipleChoiceVote:
        if not isinstance(vote, MultipleChoiceVote):
            try:
                vote = MultipleChoiceVote(int(vote))
            except (TypeError, ValueError) as e:
                raise InvalidVoteError(f"Invalid vote: {vote!r}") from e
        if vote.option_id < 0 or vote.option_id >= len(proposal.choices):
            raise InvalidVoteError(
                f"Option {vote.option_id} does not exist on proposal #{proposal.id}"
            )
        return vote

    def _messages_to_execute(self, proposal: MultipleChoiceProposal) -> List[Any]:
        winner = proposal.winning_choice()
        if winner is None:
            raise InvalidProposalError(f"Proposal #{proposal.id} has no winning choice")
        return list(winner.msgs)
