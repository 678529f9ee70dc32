"""
Scene orchestrator for independent rigid bodies.

Owns the bodies, the rate function and the frame history, advances the
history with the RK4 integrator of :class:`~kinelab.dynamics.frame.Frame3`
and optionally logs every frame to CSV with automatic output organization.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.forces import BodyDynamics, Force, Gravity
from kinelab.dynamics.frame import Frame3, RateFunction
from kinelab.logger import CSVLogger
from kinelab.spatial.vector3 import Vector3
from kinelab.utils.io import history_to_dataframe, save_simulation_history
from kinelab.utils.validation import validate_positive, validate_timestep

# Default output directory
DEFAULT_OUTPUT_DIR = Path("output")


class Scene:
    """
    Container and orchestrator for a set of rigid bodies.

    Parameters
    ----------
    bodies : iterable of RigidBody
        Initial bodies. More can be added with :meth:`add_body`.
    global_forces : iterable of Force
        Force laws applied to every body by the default rate function.
    rate_function : RateFunction | None
        Callable mapping a :class:`Frame3` to one :class:`ObjRate` per body.
        If None, a :class:`BodyDynamics` over ``bodies`` and
        ``global_forces`` is used.
    simulation_name : str | None
        Name for this simulation. If given, logging is enabled immediately.
    output_dir : Path | str | None
        Base directory for all outputs. Defaults to "./output".
        Final structure: output_dir/simulation_name_timestamp/logs/ and /plots/
    auto_timestamp : bool
        If True, append a timestamp to the simulation folder name.
    auto_save_plots : bool
        If True, generate plots when :meth:`run` completes. Only works if
        logging is enabled.
    log_fields : list[str] | None
        State fields to log per body, see :class:`CSVLogger`.
    buffer_size : int
        Logger row buffer.

    Attributes
    ----------
    bodies : list[RigidBody]
        Bodies in frame order.
    global_forces : list[Force]
        Laws applied to every body (default rate function only).
    logger : CSVLogger | None
        Data logger, or None if logging is disabled.
    output_path : Path | None
        Simulation output directory.

    Notes
    -----
    The history starts with the frame built by :meth:`reset` from the
    bodies' initial states. Adding a body clears the history; the next
    :meth:`step` resets the scene.

    Examples
    --------
    >>> scene = Scene(global_forces=[Drag(k_linear=0.1, k_angular=0.01)])
    >>> scene.add_body(RigidBody("box", 2.0, [Mesh3.rectangular_prism(1, 1, 1)]))
    >>> scene.enable_logging("tumbling_box")
    >>> scene.run(duration=5.0, dt=0.01)
    >>> scene.save_plots()
    """

    def __init__(
        self,
        bodies: Iterable[RigidBody] = (),
        global_forces: Iterable[Force] = (),
        rate_function: RateFunction | None = None,
        simulation_name: str | None = None,
        output_dir: Path | str | None = None,
        auto_timestamp: bool = True,
        auto_save_plots: bool = False,
        log_fields: list[str] | None = None,
        buffer_size: int = 1000,
    ) -> None:
        self.bodies: list[RigidBody] = list(bodies)
        self.global_forces: list[Force] = list(global_forces)
        self.dynamics: BodyDynamics | None = None
        if rate_function is None:
            self.dynamics = BodyDynamics(self.bodies, self.global_forces)
            # share the lists so later additions are seen by the dynamics
            self.dynamics.bodies = self.bodies
            self.dynamics.global_forces = self.global_forces
            rate_function = self.dynamics
        self.rate_function: RateFunction = rate_function
        self._history: list[Frame3] = []

        # Output configuration
        self._simulation_name = simulation_name
        self._output_dir = Path(output_dir) if output_dir else DEFAULT_OUTPUT_DIR
        self._auto_timestamp = auto_timestamp
        self._auto_save_plots = auto_save_plots
        self._log_fields = log_fields
        self._buffer_size = buffer_size
        self.output_path: Path | None = None
        self.logger: CSVLogger | None = None

        if simulation_name is not None:
            self.enable_logging(simulation_name)

    def __repr__(self) -> str:
        return f"Scene(bodies={[b.name for b in self.bodies]}, t={self.time})"

    # --- Configuration ---

    def add_body(self, body: RigidBody) -> int:
        """
        Add a rigid body to the scene.

        Returns
        -------
        int
            Index of the body's state in every frame.

        Raises
        ------
        ValueError
            If a body with the same name already exists.

        Notes
        -----
        The history is cleared. An open log is restarted so its header
        includes the new body.
        """
        if any(b.name == body.name for b in self.bodies):
            raise ValueError(f"Body name '{body.name}' already in scene")
        self.bodies.append(body)
        self._history.clear()
        if self.logger is not None:
            self.logger = self._open_logger(self.logger)
        return len(self.bodies) - 1

    def add_global_force(self, force: Force) -> None:
        """Add a force law applied to all bodies (e.g. gravity)."""
        if self.dynamics is None:
            raise RuntimeError("Global forces require the default rate function.")
        self.global_forces.append(force)

    def add_body_force(self, body_name: str, force: Force) -> None:
        """Attach a force law to one body, by name."""
        if self.dynamics is None:
            raise RuntimeError("Body forces require the default rate function.")
        self.dynamics.add_body_force(body_name, force)

    def get_body(self, name: str) -> RigidBody:
        for body in self.bodies:
            if body.name == name:
                return body
        raise KeyError(f"No body named '{name}'")

    # --- Logging ---

    def enable_logging(self, name: str | None = None) -> Path:
        """
        Enable data logging with automatic output organization.

        Parameters
        ----------
        name : str | None
            Simulation name. If None, uses the name from ``__init__``.

        Returns
        -------
        Path
            The created output directory.

        Raises
        ------
        ValueError
            If no simulation name is available.

        Notes
        -----
        Creates directory structure:
            output/simulation_name_timestamp/
                logs/
                plots/
        The current frame, if any, is logged immediately.
        """
        if name is not None:
            self._simulation_name = name

        if self._simulation_name is None:
            raise ValueError(
                "Simulation name required for logging. "
                "Either pass name to __init__ or to enable_logging()."
            )

        if self._auto_timestamp:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            folder_name = f"{self._simulation_name}_{timestamp}"
        else:
            folder_name = self._simulation_name

        self.disable_logging()
        self.output_path = self._output_dir / folder_name

        logs_dir = self.output_path / "logs"
        plots_dir = self.output_path / "plots"
        logs_dir.mkdir(parents=True, exist_ok=True)
        plots_dir.mkdir(parents=True, exist_ok=True)

        self.logger = CSVLogger(
            logs_dir / "simulation.csv",
            buffer_size=self._buffer_size,
            fields=self._log_fields,
        )

        print(f"[Scene] Logging enabled: {self.output_path}")
        print(f"        Logs: {logs_dir}")
        print(f"        Plots: {plots_dir}")

        if self._history:
            self.logger.log(self.current, self.bodies)
        return self.output_path

    def _open_logger(self, previous: CSVLogger) -> CSVLogger:
        """Close ``previous`` and start an empty log at the same path."""
        previous.close()
        print(f"[Scene] Restarting log: {previous.filepath}")
        return CSVLogger(previous.filepath, buffer_size=previous.buffer_size, fields=previous.fields)

    def disable_logging(self) -> None:
        """Disable logging and close any open log file."""
        if self.logger is not None:
            self.logger.close()
            self.logger = None
            print("[Scene] Logging disabled")

    # --- History ---

    def reset(self) -> Frame3:
        """
        Restart the history from the bodies' initial states at ``t = 0``.

        Returns
        -------
        Frame3
            The initial frame.
        """
        frame = Frame3(0.0, tuple(b.initial_state for b in self.bodies))
        self._history = [frame]
        if self.logger is not None:
            self.logger.log(frame, self.bodies)
        return frame

    @property
    def current(self) -> Frame3:
        """Latest frame (resets the scene if the history is empty)."""
        if not self._history:
            self.reset()
        return self._history[-1]

    @property
    def time(self) -> float:
        return self._history[-1].time if self._history else 0.0

    @property
    def history(self) -> tuple[Frame3, ...]:
        return tuple(self._history)

    def state_of(self, name: str):
        """Current state of the named body."""
        index = self.bodies.index(self.get_body(name))
        return self.current[index]

    def to_dataframe(self):
        """History as a pandas DataFrame, one row per frame."""
        return history_to_dataframe(self._history, [b.name for b in self.bodies])

    def save_history(self, filepath: str | Path) -> Path:
        """Write the full history to CSV (independent of the logger)."""
        return save_simulation_history(self._history, [b.name for b in self.bodies], filepath)

    # --- Integration ---

    def step(self, dt: float) -> Frame3:
        """
        Advance the scene by one RK4 step.

        Parameters
        ----------
        dt : float
            Time step [s].

        Returns
        -------
        Frame3
            The new frame, appended to the history and logged.

        Raises
        ------
        ValueError
            If ``dt`` is not positive or the rate function returns the
            wrong number of rates.
        """
        validate_timestep(dt)
        frame = self.current.integrate(dt, self.rate_function)
        self._history.append(frame)
        if self.logger is not None:
            self.logger.log(frame, self.bodies)
        return frame

    def run(self, duration: float, dt: float, log_interval: float = 1.0) -> Frame3:
        """
        Run fixed-step integration for ``duration`` seconds.

        Parameters
        ----------
        duration : float
            Simulated time span [s]. Rounded to a whole number of steps.
        dt : float
            Fixed time step [s].
        log_interval : float
            Interval [s] for printing progress. Set to <= 0 to disable.

        Returns
        -------
        Frame3
            The final frame.

        Notes
        -----
        Flushes the logger and generates plots (if enabled) when complete,
        also when a step raises.
        """
        validate_positive(duration, "Duration")
        validate_timestep(dt)
        n_steps = max(1, int(round(duration / dt)))
        frame = self.current
        last_log_time = frame.time

        print(f"[Scene] Starting simulation: {duration}s duration, dt={dt}s, {len(self.bodies)} bodies")

        try:
            for _ in range(n_steps):
                frame = self.step(dt)
                if log_interval > 0 and (frame.time - last_log_time) >= log_interval:
                    energy = self.get_energy()
                    print(f"[Scene] t={frame.time:6.2f}s | E={energy['total']:.6g} J")
                    last_log_time = frame.time
        finally:
            if self.logger:
                self.logger.flush()

            if self._auto_save_plots and self.logger is not None:
                print("[Scene] Auto-generating plots...")
                self.save_plots()

        print(f"[Scene] Simulation finished at t={frame.time:.6f}s")
        return frame

    # --- Shapes, plotting and analysis ---

    def shapes(self) -> list[list[list[list[Vector3]]]]:
        """
        World-space faces of every body in the current frame.

        One entry per body, each a list of meshes, each a list of faces
        given as point lists.
        """
        frame = self.current
        return [body.get_shape(state) for body, state in zip(self.bodies, frame.states)]

    def save_plots(self, bodies: list[str] | None = None, show: bool = False) -> None:
        """
        Generate and save standard plots from the logged data.

        Creates a 3D trajectory and a velocity/angular velocity plot per body,
        an energy plot when kinetic energy is logged, and a projection of
        all body meshes in the current frame.

        Parameters
        ----------
        bodies : list[str] | None
            Body names to plot. If None, plots all bodies.
        show : bool
            If True, display plots interactively (blocks execution).

        Raises
        ------
        RuntimeError
            If logging is not enabled or nothing was logged yet.
        """
        if self.logger is None or self.output_path is None:
            raise RuntimeError(
                "Logging must be enabled to save plots. Call enable_logging()."
            )

        from kinelab.visualization.plotting import (
            plot_energy,
            plot_mesh_projection,
            plot_trajectory_3d,
            plot_velocity_and_omega,
        )

        self.logger.flush()
        csv_path = self.logger.filepath
        plots_dir = self.output_path / "plots"

        if not csv_path.exists() or self.logger.rows_written == 0:
            raise RuntimeError(
                f"No logged data found at {csv_path}. "
                "Has the simulation been run yet?"
            )

        if bodies is None:
            bodies = [b.name for b in self.bodies]

        fields = self.logger.fields
        print(f"[Scene] Generating plots for: {', '.join(bodies)}")
        for name in bodies:
            if "p" in fields:
                plot_trajectory_3d(
                    str(csv_path), name,
                    save_path=str(plots_dir / f"{name}_trajectory_3d.png"),
                    show=show,
                )
            if "v" in fields and "w" in fields:
                plot_velocity_and_omega(
                    str(csv_path), name,
                    save_path=str(plots_dir / f"{name}_velocity_omega.png"),
                    show=show,
                )
        if "ke" in fields:
            plot_energy(
                str(csv_path), bodies,
                save_path=str(plots_dir / "kinetic_energy.png"),
                show=show,
            )
        if any(b.meshes for b in self.bodies):
            plot_mesh_projection(
                self.bodies, self.current,
                save_path=str(plots_dir / "scene_projection.png"),
                show=show,
            )

        print(f"[Scene] Plots saved to: {plots_dir}")

    def get_energy(self) -> dict[str, float]:
        """
        Compute total scene energy (diagnostic).

        Returns
        -------
        dict[str, float]
            Dictionary with keys:
            - 'kinetic': total kinetic energy [J]
            - 'potential': gravitational potential energy [J]
            - 'total': sum of kinetic and potential [J]

        Notes
        -----
        Potential energy uses the first :class:`Gravity` among the global
        forces, relative to the world origin.
        """
        frame = self.current
        KE = sum(b.kinetic_energy(s) for b, s in zip(self.bodies, frame.states))

        PE = 0.0
        for fg in self.global_forces:
            if isinstance(fg, Gravity):
                for b, s in zip(self.bodies, frame.states):
                    # PE = -m * g . r
                    PE -= b.mass * fg.g.dot(s.position)
                break  # Only first gravity force

        return {
            'kinetic': float(KE),
            'potential': float(PE),
            'total': float(KE + PE)
        }
