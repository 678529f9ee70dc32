"""
Snapshots of an ensemble of bodies and the fixed-step RK4 integrator.

A :class:`Frame3` pairs a time with one :class:`ObjState` per body. A
*rate function* maps a frame to one :class:`ObjRate` per body; it is the
only place forces enter the integration.
"""
from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from .state import ObjRate, ObjState

RateFunction = Callable[["Frame3"], Sequence[ObjRate]]


@dataclass(frozen=True, slots=True)
class Frame3:
    """
    Immutable ensemble snapshot.

    Parameters
    ----------
    time : float
        Simulation time [s].
    states : sequence of ObjState
        One state per body, stored as a tuple.
    """

    time: float
    states: tuple[ObjState, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "time", float(self.time))
        object.__setattr__(self, "states", tuple(self.states))

    @property
    def count(self) -> int:
        return len(self.states)

    def __len__(self) -> int:
        return len(self.states)

    def __getitem__(self, index: int) -> ObjState:
        return self.states[index]

    def __iter__(self) -> Iterator[ObjState]:
        return iter(self.states)

    def _check_rates(self, rates: Sequence[ObjRate]) -> Sequence[ObjRate]:
        if len(rates) != self.count:
            raise ValueError(
                f"Rate count {len(rates)} does not match body count {self.count}"
            )
        return rates

    def step(self, dt: float, rates: Sequence[ObjRate]) -> Frame3:
        """
        Advance every body by one explicit step.

        Raises
        ------
        ValueError
            If ``len(rates)`` differs from the body count.
        """
        rates = self._check_rates(rates)
        return Frame3(
            self.time + dt,
            tuple(state.step(dt, rate) for state, rate in zip(self.states, rates)),
        )

    def integrate(self, dt: float, rate_fn: RateFunction) -> Frame3:
        """
        One classical Runge-Kutta 4 step.

        Stage rates are evaluated at ``t``, ``t + dt/2`` (twice) and
        ``t + dt``. Every stage frame is stepped from this frame, and the
        result is this frame stepped by ``K0/6 + K1/3 + K2/3 + K3/6``.

        Parameters
        ----------
        dt : float
            Time step [s].
        rate_fn : RateFunction
            Returns one rate per body. The count is checked at every stage.

        Returns
        -------
        Frame3
            Frame at ``time + dt``.

        Raises
        ------
        ValueError
            If ``rate_fn`` returns the wrong number of rates.
        """
        half = 0.5 * dt
        k0 = self._check_rates(rate_fn(self))
        k1 = self._check_rates(rate_fn(self.step(half, k0)))
        k2 = self._check_rates(rate_fn(self.step(half, k1)))
        k3 = self._check_rates(rate_fn(self.step(dt, k2)))

        averaged = [
            a.scale(1.0 / 6.0).add(b.scale(1.0 / 3.0)).add(c.scale(1.0 / 3.0)).add(d.scale(1.0 / 6.0))
            for a, b, c, d in zip(k0, k1, k2, k3)
        ]
        return self.step(dt, averaged)


def free_motion(frame: Frame3) -> list[ObjRate]:
    """Rate function with no forcing: constant linear and angular velocity."""
    return [ObjRate.from_state(state) for state in frame.states]
