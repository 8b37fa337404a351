"""
Session Comparison for VBO Telemetry

This module keeps one main session and any number of comparator sessions in
step with each other. Every position is expressed as normalized progress,
the fraction of the session completed:

    lap_progress     = sample index / (lap sample count - 1)   (0 for 1-sample laps)
    session_progress = (lap index + lap_progress) / lap count

Moving the main session moves every comparator to its sample with the
closest normalized progress. Sessions with different lap counts or lap
lengths are therefore compared on fractional completion only, never on
distance or time.

Navigation state is held per session and guarded by a lock, so a
SessionComparison can be shared between a playback thread and a UI thread.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from . import constants
from .config import ComparisonOptions
from .errors import NavigationError, SessionValidationError
from .models import Sample, Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedPosition:
    lap_number: int
    lap_progress: float
    session_progress: float
    data_point_index: int
    sample: Sample
    normalized_progress: float


@dataclass(frozen=True)
class SessionState:
    """Current position of one session under comparison."""

    session: Session
    current_lap_index: int
    current_data_point_index: int
    position: NormalizedPosition


@dataclass(frozen=True)
class ClosestMatch:
    """
    Result of a closest-progress search.

    Attributes:
        lap_index: Index of the matched lap in ``session.laps``.
        data_point_index: Index of the matched sample within that lap.
        position: Normalized position of the match.
        difference: Absolute progress difference to the target.
        within_tolerance: True if ``difference`` is within the comparison's
            progress tolerance. A match is returned either way.
    """

    lap_index: int
    data_point_index: int
    position: NormalizedPosition
    difference: float
    within_tolerance: bool


@dataclass(frozen=True)
class SynchronizedSamples:
    main: Sample
    comparators: Tuple[Sample, ...]


@dataclass(frozen=True)
class SessionSummary:
    file_path: str
    lap_number: int
    progress: float
    speed: float


@dataclass(frozen=True)
class ComparatorSummary:
    file_path: str
    lap_number: int
    progress: float
    speed: float
    delta: float  # comparator time minus main time, seconds


@dataclass(frozen=True)
class ComparisonSummary:
    main: SessionSummary
    comparators: Tuple[ComparatorSummary, ...]


def calculate_normalized_position(session: Session, lap_index: int, data_point_index: int) -> NormalizedPosition:
    """
    Normalized position of one sample of a session.

    Args:
        session: Session with laps.
        lap_index: Index into ``session.laps``.
        data_point_index: Index into that lap's samples.

    Returns:
        NormalizedPosition for the sample.

    Raises:
        NavigationError: If either index is out of range.
    """
    if not 0 <= lap_index < len(session.laps):
        raise NavigationError(f"Invalid lap index {lap_index} for session {session.file_path} "
                              f"({len(session.laps)} laps)")
    lap = session.laps[lap_index]
    if not 0 <= data_point_index < len(lap.data_points):
        raise NavigationError(f"Invalid data point index {data_point_index} for lap {lap.lap_number} "
                              f"in session {session.file_path} ({len(lap.data_points)} samples)")

    count = len(lap.data_points)
    lap_progress = data_point_index / (count - 1) if count > 1 else 0.0
    session_progress = (lap_index + lap_progress) / len(session.laps)

    return NormalizedPosition(
        lap_number=lap.lap_number,
        lap_progress=lap_progress,
        session_progress=session_progress,
        data_point_index=data_point_index,
        sample=lap.data_points[data_point_index],
        normalized_progress=session_progress,
    )


class SessionComparison:
    """
    Synchronized navigation through a main session and its comparators.

    Args:
        main_session: Session that drives navigation.
        comparator_sessions: Sessions kept in step with the main session.
        options: Comparison options. Defaults to ComparisonOptions().

    Raises:
        SessionValidationError: If any session has no laps or an empty lap,
            or a comparator's circuit differs from the main session's circuit
            while ``allow_different_tracks`` is off.
    """

    def __init__(
        self,
        main_session: Session,
        comparator_sessions: Sequence[Session] = (),
        options: Optional[ComparisonOptions] = None,
    ):
        self.main_session = main_session
        self.comparator_sessions: Tuple[Session, ...] = tuple(comparator_sessions)
        self.options = options or ComparisonOptions()

        self._validate_sessions()

        self._lock = threading.RLock()
        self._states: Dict[Session, SessionState] = {}
        self._initialize_states()

    def _all_sessions(self) -> List[Session]:
        return [self.main_session, *self.comparator_sessions]

    def _validate_sessions(self) -> None:
        for session in self._all_sessions():
            if not session.laps:
                raise SessionValidationError(
                    f"Session {session.file_path} has no laps and cannot be compared",
                    file_path=session.file_path,
                )
            for lap in session.laps:
                if not lap.data_points:
                    raise SessionValidationError(
                        f"Lap {lap.lap_number} in session {session.file_path} has no data points",
                        file_path=session.file_path,
                    )

        if self.options.allow_different_tracks:
            return

        main_circuit = self.main_session.circuit_info.circuit
        for session in self.comparator_sessions:
            circuit = session.circuit_info.circuit
            if main_circuit and circuit and main_circuit != circuit:
                raise SessionValidationError(
                    f"Cannot compare sessions from different tracks: {main_circuit} vs {circuit}. "
                    f"Set allow_different_tracks=True to override.",
                    file_path=session.file_path,
                )

    def _initialize_states(self) -> None:
        with self._lock:
            for session in self._all_sessions():
                self._states[session] = SessionState(
                    session=session,
                    current_lap_index=0,
                    current_data_point_index=0,
                    position=calculate_normalized_position(session, 0, 0),
                )

    def _state_for(self, session: Session) -> SessionState:
        state = self._states.get(session)
        if state is None:
            raise NavigationError(f"Session {session.file_path} is not part of this comparison")
        return state

    @staticmethod
    def _step_count(steps) -> int:
        try:
            count = int(steps)
        except (TypeError, ValueError):
            raise NavigationError(f"Step count must be an integer, got {steps!r}") from None
        if count != steps:
            raise NavigationError(f"Step count must be an integer, got {steps!r}")
        return count

    def _comparator_at(self, index: int) -> Session:
        if not 0 <= index < len(self.comparator_sessions):
            raise NavigationError(f"Invalid comparator index {index} "
                                  f"({len(self.comparator_sessions)} comparators)")
        return self.comparator_sessions[index]

    # State queries

    @property
    def main_state(self) -> SessionState:
        with self._lock:
            return self._states[self.main_session]

    def comparator_state(self, index: int) -> SessionState:
        with self._lock:
            return self._states[self._comparator_at(index)]

    def comparator_states(self) -> List[SessionState]:
        with self._lock:
            return [self._states[session] for session in self.comparator_sessions]

    @property
    def main_lap_count(self) -> int:
        return len(self.main_session.laps)

    def comparator_lap_count(self, index: int) -> int:
        return len(self._comparator_at(index).laps)

    @property
    def main_progress(self) -> float:
        """Normalized progress of the main session, in [0, 1]."""
        return self.main_state.position.normalized_progress

    # Navigation

    def set_main_position(self, lap_index: int, data_point_index: int) -> None:
        """
        Move the main session to a lap index and sample index, then move
        every comparator to its closest progress point.

        Raises:
            NavigationError: If either index is out of range. State is left
                unchanged.
        """
        with self._lock:
            position = calculate_normalized_position(self.main_session, lap_index, data_point_index)
            self._states[self.main_session] = SessionState(
                session=self.main_session,
                current_lap_index=lap_index,
                current_data_point_index=data_point_index,
                position=position,
            )
            self._sync_comparators_to_main()

    def advance_main(self, steps: int = 1) -> None:
        """
        Move the main session forward by ``steps`` samples.

        Crosses lap boundaries and stops at the last sample of the last lap.
        Negative steps rewind.
        """
        steps = self._step_count(steps)
        if steps < 0:
            self.rewind_main(-steps)
            return

        with self._lock:
            state = self._states[self.main_session]
            laps = self.main_session.laps
            lap_index = state.current_lap_index
            data_point_index = state.current_data_point_index

            for _ in range(steps):
                data_point_index += 1
                if data_point_index >= len(laps[lap_index].data_points):
                    lap_index += 1
                    if lap_index >= len(laps):
                        lap_index = len(laps) - 1
                        data_point_index = len(laps[lap_index].data_points) - 1
                        break
                    data_point_index = 0

            self.set_main_position(lap_index, data_point_index)

    def rewind_main(self, steps: int = 1) -> None:
        """
        Move the main session back by ``steps`` samples.

        Crosses lap boundaries and stops at the first sample of the first lap.
        Negative steps advance.
        """
        steps = self._step_count(steps)
        if steps < 0:
            self.advance_main(-steps)
            return

        with self._lock:
            state = self._states[self.main_session]
            laps = self.main_session.laps
            lap_index = state.current_lap_index
            data_point_index = state.current_data_point_index

            for _ in range(steps):
                data_point_index -= 1
                if data_point_index < 0:
                    lap_index -= 1
                    if lap_index < 0:
                        lap_index = 0
                        data_point_index = 0
                        break
                    data_point_index = len(laps[lap_index].data_points) - 1

            self.set_main_position(lap_index, data_point_index)

    def jump_to_lap(self, lap_number: int) -> None:
        """Move the main session to the first sample of the lap with this number."""
        for lap_index, lap in enumerate(self.main_session.laps):
            if lap.lap_number == lap_number:
                self.set_main_position(lap_index, 0)
                return
        raise NavigationError(f"Lap {lap_number} not found in main session {self.main_session.file_path}")

    def set_main_progress(self, progress: float) -> None:
        """
        Move the main session to a normalized progress value.

        Progress 1 is the last sample of the last lap. Other values pick the
        lap by ``floor(progress * lap count)`` and the sample by rounding the
        remaining fraction over that lap's samples.

        Args:
            progress: Value in [0, 1].

        Raises:
            NavigationError: If progress is outside [0, 1].
        """
        if not 0.0 <= progress <= 1.0:
            raise NavigationError(f"Progress must be between 0 and 1, got {progress}")

        laps = self.main_session.laps
        total_laps = len(laps)

        if progress == 1.0:
            last_index = total_laps - 1
            self.set_main_position(last_index, len(laps[last_index].data_points) - 1)
            return

        lap_position = progress * total_laps
        lap_index = min(math.floor(lap_position), total_laps - 1)
        lap_progress = lap_position - lap_index

        count = len(laps[lap_index].data_points)
        data_point_index = min(math.floor(lap_progress * (count - 1) + 0.5), count - 1)
        self.set_main_position(lap_index, data_point_index)

    def reset(self) -> None:
        """Put every session back on lap 0, sample 0."""
        self._initialize_states()

    # Matching

    def find_closest_progress_point(self, session: Session, target_progress: float) -> ClosestMatch:
        """
        Sample of a session whose normalized progress is closest to a target.

        Scans every lap and sample in order and stops early on a difference
        below EXACT_MATCH_EPSILON. Otherwise the first sample with the
        smallest difference wins.

        Args:
            session: Session to search; must be part of this comparison.
            target_progress: Normalized progress to match.

        Returns:
            ClosestMatch. There is always a match; ``within_tolerance``
            reports whether it is within the progress tolerance.

        Raises:
            NavigationError: If the session is not tracked.
        """
        with self._lock:
            self._state_for(session)

        best: Optional[Tuple[int, int, NormalizedPosition]] = None
        best_difference = math.inf

        for lap_index, lap in enumerate(session.laps):
            for point_index in range(len(lap.data_points)):
                position = calculate_normalized_position(session, lap_index, point_index)
                difference = abs(position.normalized_progress - target_progress)
                if difference < best_difference:
                    best_difference = difference
                    best = (lap_index, point_index, position)
                if difference < constants.EXACT_MATCH_EPSILON:
                    return self._match(best, best_difference)

        return self._match(best, best_difference)

    def _match(self, best: Tuple[int, int, NormalizedPosition], difference: float) -> ClosestMatch:
        lap_index, data_point_index, position = best
        return ClosestMatch(
            lap_index=lap_index,
            data_point_index=data_point_index,
            position=position,
            difference=difference,
            within_tolerance=difference <= self.options.progress_tolerance,
        )

    def find_closest_to_session(self, target_session: Session, source_session: Session,
                                source_data_point_index: int) -> ClosestMatch:
        """
        Match a sample of the source session's current lap in the target session.

        Args:
            target_session: Session to search; must be part of this comparison.
            source_session: Session the position comes from; must be part of
                this comparison.
            source_data_point_index: Sample index within the source session's
                current lap.

        Returns:
            Closest match in the target session.

        Raises:
            NavigationError: If either session is not tracked, or the sample
                index is out of range.
        """
        with self._lock:
            source_state = self._state_for(source_session)
            self._state_for(target_session)
            source_position = calculate_normalized_position(
                source_session, source_state.current_lap_index, source_data_point_index
            )
        return self.find_closest_progress_point(target_session, source_position.normalized_progress)

    def _sync_comparators_to_main(self) -> None:
        target = self._states[self.main_session].position.normalized_progress
        for session in self.comparator_sessions:
            match = self.find_closest_progress_point(session, target)
            if not match.within_tolerance:
                logger.debug(f"Closest point in {session.file_path} is {match.difference:.4f} "
                             f"from main progress {target:.4f}")
            self._states[session] = SessionState(
                session=session,
                current_lap_index=match.lap_index,
                current_data_point_index=match.data_point_index,
                position=match.position,
            )

    # Snapshots

    def synchronized_samples(self) -> SynchronizedSamples:
        """Current sample of the main session and of every comparator."""
        with self._lock:
            return SynchronizedSamples(
                main=self._states[self.main_session].position.sample,
                comparators=tuple(self._states[s].position.sample for s in self.comparator_sessions),
            )

    def summary(self) -> ComparisonSummary:
        """Lap, progress and speed of every session, with each comparator's time delta to main."""
        with self._lock:
            main_state = self._states[self.main_session]
            main_sample = main_state.position.sample

            comparators = []
            for session in self.comparator_sessions:
                state = self._states[session]
                sample = state.position.sample
                comparators.append(ComparatorSummary(
                    file_path=session.file_path,
                    lap_number=state.position.lap_number,
                    progress=state.position.session_progress,
                    speed=sample.velocity,
                    delta=sample.time - main_sample.time,
                ))

            return ComparisonSummary(
                main=SessionSummary(
                    file_path=self.main_session.file_path,
                    lap_number=main_state.position.lap_number,
                    progress=main_state.position.session_progress,
                    speed=main_sample.velocity,
                ),
                comparators=tuple(comparators),
            )
