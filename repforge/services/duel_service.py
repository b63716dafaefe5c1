"""
repforge.services.duel_service — Duel Arbiter
==============================================

Two-party, time-boxed XP competitions with a fairness rule on affinity
balance.

State machine::

    pending ──accept──▶ active ──finalize (≥ end_time)──▶ completed
       │
       ├──decline──▶ declined
       ├──cancel───▶ cancelled   (challenger only)
       └──sweep (past accept deadline)──▶ expired

While a duel is active, every stat submission by either party adds that
party's XP/Warrior/Mage gain to the duel's accumulators and recomputes the
Warrior share ``warrior_gain / (warrior_gain + mage_gain)``.  Leaving the
balance band sets the party's ``balance_penalty`` flag, and it is never
cleared.  Tracking runs until the duel is finalized, so a submission
between ``end_time`` and the sweep counts toward both XP and balance.

Outcome at finalize:

* exactly one party penalized → the other wins
* both penalized              → draw
* neither                     → larger ``final_xp − start_xp`` wins; equal is a draw

The winner of a completed duel is then paid ``duel_win_xp`` through the
progression ledger, plus ``duel_perfect_balance_xp`` when their own Warrior
share ended within 45–55%.

Every transition is a conditional ``UPDATE … WHERE status = <expected>``;
a lost race or a storage error leaves the record as it was.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from repforge.config import BalanceBand, ForgeConfig
from repforge.constants import PERFECT_BALANCE_LOWER, PERFECT_BALANCE_UPPER
from repforge.database.engine import get_session
from repforge.database.models import Duel, DuelContribution, DuelStatus, User
from repforge.engine.progression import ProgressionDelta, StatContribution
from repforge.services.ledger import AwardContext, AwardFailedError

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from repforge.services.ledger import ProgressionLedger

logger = logging.getLogger(__name__)

OPEN_STATUSES = (DuelStatus.PENDING.value, DuelStatus.ACTIVE.value)
ROLES = ("challenger", "opponent")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class DuelError(Exception):
    """Base class for rejected duel operations."""


class DuelNotFoundError(DuelError, LookupError):
    def __init__(self, duel_id: int) -> None:
        self.duel_id = duel_id
        super().__init__(f"Duel {duel_id} not found")


class DuelPermissionError(DuelError, PermissionError):
    pass


class InvalidChallengeError(DuelError, ValueError):
    pass


class ChallengeCooldownError(DuelError):
    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"You can send another challenge in {retry_after}s")


class DuplicateDuelError(DuelError):
    pass


class InvalidDuelTransitionError(DuelError):
    pass


class DuelExpiredError(InvalidDuelTransitionError):
    def __init__(self, duel_id: int) -> None:
        self.duel_id = duel_id
        super().__init__(f"Duel {duel_id} is past its acceptance window")


class DuelStorageError(DuelError):
    """The database rejected the write; the duel record is unchanged."""


# ---------------------------------------------------------------------------
# Fairness rules (pure)
# ---------------------------------------------------------------------------
def _utc(value: datetime | None) -> datetime | None:
    """Aware UTC datetime; naive values (SQLite) are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def warrior_share(warrior: float, mage: float) -> float | None:
    """Warrior fraction of affinity gained, or ``None`` before any gain."""
    total = (warrior or 0) + (mage or 0)
    if total <= 0:
        return None
    return (warrior or 0) / total


def in_balance(share: float | None, band: BalanceBand) -> bool:
    # No affinity gained yet counts as balanced.
    return share is None or band.contains(share)


def is_perfect_balance(share: float | None) -> bool:
    return share is not None and PERFECT_BALANCE_LOWER <= share <= PERFECT_BALANCE_UPPER


def decide_winner(
    challenger_id: int,
    opponent_id: int,
    challenger_net_xp: int,
    opponent_net_xp: int,
    challenger_penalty: bool,
    opponent_penalty: bool,
) -> int | None:
    """Winner's id, or ``None`` for a draw."""
    if challenger_penalty != opponent_penalty:
        return opponent_id if challenger_penalty else challenger_id
    if challenger_penalty:
        return None
    if challenger_net_xp == opponent_net_xp:
        return None
    return challenger_id if challenger_net_xp > opponent_net_xp else opponent_id


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DuelParticipant:
    user_id: int
    role: str
    start_xp: int | None
    final_xp: int | None
    net_xp: int | None  # live while active, final once completed
    xp_gain: float
    warrior_gain: float
    mage_gain: float
    warrior_share: float | None
    balance_penalty: bool
    perfect_balance: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "role": self.role,
            "start_xp": self.start_xp,
            "final_xp": self.final_xp,
            "net_xp": self.net_xp,
            "xp_gain": round(self.xp_gain),
            "warrior_gain": round(self.warrior_gain, 2),
            "mage_gain": round(self.mage_gain, 2),
            "warrior_percent": (
                None if self.warrior_share is None else round(self.warrior_share * 100, 1)
            ),
            "balance_penalty": self.balance_penalty,
            "perfect_balance": self.perfect_balance,
        }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True, slots=True)
class DuelSnapshot:
    id: int
    status: DuelStatus
    challenger: DuelParticipant
    opponent: DuelParticipant
    winner_id: int | None
    created_at: datetime | None
    accept_deadline: datetime | None
    start_time: datetime | None
    end_time: datetime | None
    completed_at: datetime | None

    @property
    def is_draw(self) -> bool:
        return self.status is DuelStatus.COMPLETED and self.winner_id is None

    def participant(self, user_id: int) -> DuelParticipant | None:
        for p in (self.challenger, self.opponent):
            if p.user_id == user_id:
                return p
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "challenger": self.challenger.to_dict(),
            "opponent": self.opponent.to_dict(),
            "winner_id": self.winner_id,
            "is_draw": self.is_draw,
            "created_at": _iso(self.created_at),
            "accept_deadline": _iso(self.accept_deadline),
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "completed_at": _iso(self.completed_at),
        }


@dataclass(frozen=True, slots=True)
class DuelRecord:
    user_id: int
    wins: int = 0
    losses: int = 0
    draws: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.draws

    def to_dict(self) -> dict[str, int]:
        return {
            "user_id": self.user_id,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "total": self.total,
        }


@dataclass(slots=True)
class SweepResult:
    expired: list[int] = field(default_factory=list)
    finalized: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[int]]:
        return {"expired": self.expired, "finalized": self.finalized, "failed": self.failed}


# ---------------------------------------------------------------------------
# Arbiter
# ---------------------------------------------------------------------------
class DuelArbiter:
    """Owns every duel state transition.

    All methods are synchronous; call via ``await run_db(arbiter.method, ...)``.
    Every method accepts an optional *now* (UTC) for deterministic callers;
    otherwise the injected *clock* is used.  Victory XP is only paid when a
    *ledger* is given.
    """

    def __init__(
        self,
        engine: Engine,
        config: ForgeConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        ledger: ProgressionLedger | None = None,
    ) -> None:
        self.engine = engine
        self.ledger = ledger
        self.band = config.balance_band() if config else BalanceBand()
        self.accept_window = timedelta(minutes=config.duel_accept_window_minutes if config else 60)
        self.duration = timedelta(hours=config.duel_duration_hours if config else 24)
        self.cooldown = timedelta(
            seconds=config.duel_challenge_cooldown_seconds if config else 60
        )
        self.history_limit = config.duel_history_limit if config else 10
        self.win_xp = config.duel_win_xp if config else 500
        self.perfect_balance_xp = config.duel_perfect_balance_xp if config else 250
        self._clock = clock or (lambda: datetime.now(UTC))

    # -- plumbing -----------------------------------------------------------

    def _now(self, now: datetime | None) -> datetime:
        return _utc(now or self._clock())

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        try:
            with get_session(self.engine) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Storage error while trying to %s", action)
            raise DuelStorageError(f"Could not {action}; please try again") from exc

    @staticmethod
    def _get(session: Session, duel_id: int) -> Duel:
        duel = session.get(Duel, duel_id)
        if duel is None:
            raise DuelNotFoundError(duel_id)
        return duel

    @staticmethod
    def _require_pending(duel: Duel, action: str) -> None:
        if duel.status == DuelStatus.PENDING:
            return
        if duel.status == DuelStatus.EXPIRED:
            raise DuelExpiredError(duel.id)
        raise InvalidDuelTransitionError(f"Duel {duel.id} is {duel.status}; cannot {action}")

    @staticmethod
    def _current_xp(session: Session, user_ids: Iterable[int]) -> dict[int, int]:
        ids = list(user_ids)
        rows = session.execute(select(User.id, User.xp).where(User.id.in_(ids))).all()
        found = {row.id: row.xp for row in rows}
        return {uid: found.get(uid, 0) for uid in ids}

    def _transition(self, session: Session, duel: Duel, expected: str, **values: Any) -> None:
        """Conditional update; raises if another writer moved the duel first."""
        result = session.execute(
            update(Duel)
            .where(Duel.id == duel.id, Duel.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.refresh(duel)
            raise InvalidDuelTransitionError(
                f"Duel {duel.id} changed concurrently (now {duel.status})"
            )
        session.refresh(duel)

    def _snapshot(self, session: Session, duel: Duel) -> DuelSnapshot:
        status = DuelStatus(duel.status)
        live_xp = None
        if status is DuelStatus.ACTIVE:
            live_xp = self._current_xp(session, (duel.challenger_id, duel.opponent_id))

        def participant(role: str) -> DuelParticipant:
            uid = getattr(duel, f"{role}_id")
            start = getattr(duel, f"{role}_start_xp")
            final = getattr(duel, f"{role}_final_xp")
            if start is None:
                net = None
            elif final is not None:
                net = final - start
            elif live_xp is not None:
                net = live_xp[uid] - start
            else:
                net = None
            w = getattr(duel, f"{role}_warrior_gain") or 0.0
            m = getattr(duel, f"{role}_mage_gain") or 0.0
            share = warrior_share(w, m)
            return DuelParticipant(
                user_id=uid,
                role=role,
                start_xp=start,
                final_xp=final,
                net_xp=net,
                xp_gain=getattr(duel, f"{role}_xp_gain") or 0.0,
                warrior_gain=w,
                mage_gain=m,
                warrior_share=share,
                balance_penalty=bool(getattr(duel, f"{role}_balance_penalty")),
                perfect_balance=is_perfect_balance(share),
            )

        return DuelSnapshot(
            id=duel.id,
            status=status,
            challenger=participant("challenger"),
            opponent=participant("opponent"),
            winner_id=duel.winner_id,
            created_at=_utc(duel.created_at),
            accept_deadline=_utc(duel.accept_deadline),
            start_time=_utc(duel.start_time),
            end_time=_utc(duel.end_time),
            completed_at=_utc(duel.completed_at),
        )

    # -- transitions ---------------------------------------------------------

    def challenge(
        self,
        challenger_id: int,
        opponent_id: int,
        *,
        opponent_is_bot: bool = False,
        now: datetime | None = None,
    ) -> DuelSnapshot:
        """Create a pending duel with an acceptance deadline."""
        now = self._now(now)
        if challenger_id == opponent_id:
            raise InvalidChallengeError("You can't challenge yourself")
        if opponent_is_bot:
            raise InvalidChallengeError("Bots can't be challenged")

        with self._transaction("create the challenge") as session:
            last = session.scalar(
                select(Duel.created_at)
                .where(Duel.challenger_id == challenger_id)
                .order_by(Duel.created_at.desc())
                .limit(1)
            )
            if last is not None:
                elapsed = (now - _utc(last)).total_seconds()
                remaining = self.cooldown.total_seconds() - elapsed
                if remaining > 0:
                    raise ChallengeCooldownError(math.ceil(remaining))

            participants = (challenger_id, opponent_id)
            busy = session.scalar(
                select(Duel.id)
                .where(
                    Duel.status.in_(OPEN_STATUSES),
                    or_(Duel.challenger_id.in_(participants), Duel.opponent_id.in_(participants)),
                )
                .limit(1)
            )
            if busy is not None:
                raise DuplicateDuelError(
                    f"A participant already has an open duel (#{busy})"
                )

            duel = Duel(
                challenger_id=challenger_id,
                opponent_id=opponent_id,
                status=DuelStatus.PENDING.value,
                created_at=now,
                accept_deadline=now + self.accept_window,
            )
            session.add(duel)
            session.flush()
            snapshot = self._snapshot(session, duel)

        logger.info(
            "Duel %d created: %d challenged %d (accept by %s)",
            snapshot.id, challenger_id, opponent_id, snapshot.accept_deadline,
        )
        return snapshot

    def accept(self, duel_id: int, user_id: int, *, now: datetime | None = None) -> DuelSnapshot:
        """Opponent accepts within the window; start XP is snapshotted."""
        now = self._now(now)
        with self._transaction("accept the duel") as session:
            duel = self._get(session, duel_id)
            if user_id != duel.opponent_id:
                raise DuelPermissionError("Only the challenged user can accept this duel")
            self._require_pending(duel, "accept")
            if now > _utc(duel.accept_deadline):
                raise DuelExpiredError(duel_id)

            start = self._current_xp(session, (duel.challenger_id, duel.opponent_id))
            self._transition(
                session, duel, DuelStatus.PENDING.value,
                status=DuelStatus.ACTIVE.value,
                challenger_start_xp=start[duel.challenger_id],
                opponent_start_xp=start[duel.opponent_id],
                start_time=now,
                end_time=now + self.duration,
            )
            snapshot = self._snapshot(session, duel)

        logger.info("Duel %d accepted by %d; ends %s", duel_id, user_id, snapshot.end_time)
        return snapshot

    def decline(self, duel_id: int, user_id: int, *, now: datetime | None = None) -> DuelSnapshot:
        """Either party declines a pending duel."""
        now = self._now(now)
        with self._transaction("decline the duel") as session:
            duel = self._get(session, duel_id)
            if duel.role_of(user_id) is None:
                raise DuelPermissionError("Only a participant can decline this duel")
            self._require_pending(duel, "decline")
            if now > _utc(duel.accept_deadline):
                raise DuelExpiredError(duel_id)
            self._transition(
                session, duel, DuelStatus.PENDING.value,
                status=DuelStatus.DECLINED.value, completed_at=now,
            )
            snapshot = self._snapshot(session, duel)

        logger.info("Duel %d declined by %d", duel_id, user_id)
        return snapshot

    def cancel(self, duel_id: int, user_id: int, *, now: datetime | None = None) -> DuelSnapshot:
        """Challenger withdraws a pending challenge."""
        now = self._now(now)
        with self._transaction("cancel the duel") as session:
            duel = self._get(session, duel_id)
            if user_id != duel.challenger_id:
                raise DuelPermissionError("Only the challenger can cancel this duel")
            self._require_pending(duel, "cancel")
            self._transition(
                session, duel, DuelStatus.PENDING.value,
                status=DuelStatus.CANCELLED.value, completed_at=now,
            )
            snapshot = self._snapshot(session, duel)

        logger.info("Duel %d cancelled by %d", duel_id, user_id)
        return snapshot

    def track_submission(
        self,
        user_id: int,
        contributions: Iterable[StatContribution],
        *,
        now: datetime | None = None,
    ) -> list[int]:
        """Count a submission toward the user's running duels.

        Returns the ids of the duels that were updated.
        """
        now = self._now(now)
        contributions = [c for c in contributions if c.amount > 0]
        if not contributions:
            return []
        xp = sum(c.xp for c in contributions)
        warrior = sum(c.warrior for c in contributions)
        mage = sum(c.mage for c in contributions)

        touched: list[int] = []
        with self._transaction("record duel activity") as session:
            duels = session.scalars(
                select(Duel).where(
                    Duel.status == DuelStatus.ACTIVE.value,
                    or_(Duel.challenger_id == user_id, Duel.opponent_id == user_id),
                )
            ).all()
            for duel in duels:
                if now < _utc(duel.start_time):
                    continue
                role = duel.role_of(user_id)
                xp_col = getattr(Duel, f"{role}_xp_gain")
                w_col = getattr(Duel, f"{role}_warrior_gain")
                m_col = getattr(Duel, f"{role}_mage_gain")
                penalty_col = getattr(Duel, f"{role}_balance_penalty")

                row = session.execute(
                    update(Duel)
                    .where(Duel.id == duel.id, Duel.status == DuelStatus.ACTIVE.value)
                    .values({xp_col: xp_col + xp, w_col: w_col + warrior, m_col: m_col + mage})
                    .returning(w_col, m_col, penalty_col)
                    .execution_options(synchronize_session=False)
                ).one_or_none()
                if row is None:
                    continue

                share = warrior_share(row[0], row[1])
                if not row[2] and not in_balance(share, self.band):
                    # One-way flag: only ever written as true.
                    session.execute(
                        update(Duel)
                        .where(Duel.id == duel.id)
                        .values({penalty_col: True})
                        .execution_options(synchronize_session=False)
                    )
                    logger.info(
                        "Duel %d: %s %d left the balance band (warrior %.1f%%); penalty set",
                        duel.id, role, user_id, share * 100,
                    )

                session.add_all(
                    DuelContribution(
                        duel_id=duel.id,
                        user_id=user_id,
                        stat=c.stat,
                        amount=c.amount,
                        xp=c.xp,
                        warrior=c.warrior,
                        mage=c.mage,
                        created_at=now,
                    )
                    for c in contributions
                )
                touched.append(duel.id)
        return touched

    def finalize(self, duel_id: int, *, now: datetime | None = None) -> DuelSnapshot:
        """Close an active duel at or after ``end_time``; no-op if already terminal."""
        now = self._now(now)
        with self._transaction("finalize the duel") as session:
            duel = self._get(session, duel_id)
            if DuelStatus(duel.status).is_terminal:
                return self._snapshot(session, duel)
            if duel.status == DuelStatus.PENDING:
                raise InvalidDuelTransitionError(f"Duel {duel_id} has not been accepted")
            if now < _utc(duel.end_time):
                raise InvalidDuelTransitionError(
                    f"Duel {duel_id} runs until {_utc(duel.end_time).isoformat()}"
                )

            final = self._current_xp(session, (duel.challenger_id, duel.opponent_id))
            challenger_net = final[duel.challenger_id] - (duel.challenger_start_xp or 0)
            opponent_net = final[duel.opponent_id] - (duel.opponent_start_xp or 0)
            winner = decide_winner(
                duel.challenger_id,
                duel.opponent_id,
                challenger_net,
                opponent_net,
                bool(duel.challenger_balance_penalty),
                bool(duel.opponent_balance_penalty),
            )
            result = session.execute(
                update(Duel)
                .where(Duel.id == duel_id, Duel.status == DuelStatus.ACTIVE.value)
                .values(
                    status=DuelStatus.COMPLETED.value,
                    challenger_final_xp=final[duel.challenger_id],
                    opponent_final_xp=final[duel.opponent_id],
                    winner_id=winner,
                    completed_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            session.refresh(duel)
            snapshot = self._snapshot(session, duel)

        if result.rowcount == 1:
            logger.info(
                "Duel %d finalized: challenger %+d XP, opponent %+d XP → %s",
                duel_id, challenger_net, opponent_net,
                f"winner {winner}" if winner is not None else "draw",
            )
            self._award_victory(snapshot)
        return snapshot

    def _award_victory(self, snapshot: DuelSnapshot) -> int:
        """Pay the winner's victory XP once the duel is committed as completed.

        A failed award is logged; the duel result stands.  Returns the XP paid.
        """
        if self.ledger is None or snapshot.winner_id is None:
            return 0
        winner = snapshot.participant(snapshot.winner_id)
        xp = self.win_xp + (self.perfect_balance_xp if winner.perfect_balance else 0)
        if xp <= 0:
            return 0
        try:
            self.ledger.award_progression(
                winner.user_id, ProgressionDelta(xp=xp), AwardContext(source="duel_victory"),
            )
        except AwardFailedError:
            logger.exception(
                "Duel %d: victory XP for user %d was not awarded", snapshot.id, winner.user_id,
            )
            return 0
        logger.info(
            "Duel %d: user %d awarded %d victory XP%s",
            snapshot.id, winner.user_id, xp,
            " (perfect balance)" if winner.perfect_balance else "",
        )
        return xp

    def sweep(self, now: datetime | None = None) -> SweepResult:
        """Expire stale challenges and finalize due duels.  Idempotent."""
        now = self._now(now)
        result = SweepResult()
        with self._transaction("expire stale challenges") as session:
            result.expired = list(session.execute(
                update(Duel)
                .where(
                    Duel.status == DuelStatus.PENDING.value,
                    Duel.accept_deadline < now,
                )
                .values(status=DuelStatus.EXPIRED.value, completed_at=now)
                .returning(Duel.id)
                .execution_options(synchronize_session=False)
            ).scalars().all())
            due = list(session.scalars(
                select(Duel.id).where(
                    Duel.status == DuelStatus.ACTIVE.value,
                    Duel.end_time <= now,
                )
            ).all())

        for duel_id in due:
            try:
                self.finalize(duel_id, now=now)
            except DuelError:
                logger.exception("Sweep could not finalize duel %d", duel_id)
                result.failed.append(duel_id)
            else:
                result.finalized.append(duel_id)

        if result.expired or result.finalized or result.failed:
            logger.info(
                "Duel sweep: %d expired, %d finalized, %d failed",
                len(result.expired), len(result.finalized), len(result.failed),
            )
        return result

    # -- queries ---------------------------------------------------------------

    def status(self, duel_id: int) -> DuelSnapshot:
        with self._transaction("load the duel") as session:
            return self._snapshot(session, self._get(session, duel_id))

    def open_duel(self, user_id: int) -> DuelSnapshot | None:
        """The user's pending or active duel, if any."""
        with self._transaction("load the duel") as session:
            duel = session.scalar(
                select(Duel)
                .where(
                    Duel.status.in_(OPEN_STATUSES),
                    or_(Duel.challenger_id == user_id, Duel.opponent_id == user_id),
                )
                .order_by(Duel.id.desc())
                .limit(1)
            )
            return self._snapshot(session, duel) if duel else None

    def history(self, user_id: int, limit: int | None = None) -> list[DuelSnapshot]:
        """Completed duels, most recent first."""
        with self._transaction("load duel history") as session:
            duels = session.scalars(
                select(Duel)
                .where(
                    Duel.status == DuelStatus.COMPLETED.value,
                    or_(Duel.challenger_id == user_id, Duel.opponent_id == user_id),
                )
                .order_by(Duel.completed_at.desc(), Duel.id.desc())
                .limit(limit or self.history_limit)
            ).all()
            return [self._snapshot(session, d) for d in duels]

    def record(self, user_id: int) -> DuelRecord:
        """Win/loss/draw counts over completed duels."""
        with self._transaction("load the duel record") as session:
            involved = or_(Duel.challenger_id == user_id, Duel.opponent_id == user_id)
            completed = Duel.status == DuelStatus.COMPLETED.value
            total = session.scalar(
                select(func.count()).select_from(Duel).where(completed, involved)
            ) or 0
            wins = session.scalar(
                select(func.count()).select_from(Duel).where(completed, Duel.winner_id == user_id)
            ) or 0
            draws = session.scalar(
                select(func.count()).select_from(Duel).where(
                    completed, involved, Duel.winner_id.is_(None)
                )
            ) or 0
        return DuelRecord(user_id, wins=wins, losses=total - wins - draws, draws=draws)
