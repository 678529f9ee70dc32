"""
Tumbling box: asymmetric rigid body thrown under gravity with damping.

Demonstrates:
- Building bodies from meshes (mass properties from the surface)
- Scene setup with logging and automatic plots
- Fixed-step RK4 integration
- Intermediate-axis flip of a spinning box
"""
import time
from pathlib import Path
import sys

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kinelab.core.simulation import Scene
from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.forces import Drag, Gravity
from kinelab.dynamics.state import ObjState
from kinelab.spatial.mesh import Mesh3
from kinelab.spatial.vector3 import Vector3
from kinelab.utils.orientation import describe_orientation, orientation_from_euler


def main():
    """Run tumbling box simulation."""
    print("=" * 60)
    print("Tumbling Box")
    print("=" * 60)

    scene = Scene(
        simulation_name="tumbling_box",
        auto_save_plots=True,  # Plots generated automatically
        log_fields=["p", "q", "v", "w", "ke"],
    )

    # 1 x 2 x 3 box spinning almost exactly about its intermediate axis
    box = RigidBody(
        "box",
        mass=6.0,
        meshes=[Mesh3.rectangular_prism(1.0, 2.0, 3.0)],
        initial_state=ObjState(
            position=Vector3(0.0, 0.0, 50.0),
            orientation=orientation_from_euler(yaw=30),
            velocity=Vector3(4.0, 0.0, 15.0),
            omega=Vector3(1e-3, 5.0, 0.0),
        ),
    )
    prism = RigidBody(
        "prism",
        mass=2.0,
        meshes=[Mesh3.triangular_prism(1.0, 1.0)],
        initial_state=ObjState(position=Vector3(3.0, 0.0, 50.0), omega=Vector3(0.0, 0.0, 2.0)),
        color="#ea4335",
    )
    scene.add_body(box)
    scene.add_body(prism)

    # Add forces
    scene.add_global_force(Gravity(Vector3(0.0, 0.0, -9.81)))
    scene.add_body_force("prism", Drag(mode="linear", k_linear=0.5, k_angular=0.05))

    print("\nInertia tensors [kg m^2]:")
    for body in scene.bodies:
        print(f"  {body.name}: {body.mmoi}")

    # Run simulation
    print("\nRunning simulation...")
    start = time.time()
    scene.run(duration=6.0, dt=0.005)
    elapsed = time.time() - start

    # Results
    print("\nResults:")
    print(f"  Simulation time: {scene.time:.3f} s")
    print(f"  Wall clock time: {elapsed:.3f} s")
    print(f"  Box orientation: {describe_orientation(scene.state_of('box').orientation)}")

    # Energy diagnostic
    energy = scene.get_energy()
    print("\nFinal Energy:")
    print(f"  Kinetic: {energy['kinetic']:.2f} J")
    print(f"  Potential: {energy['potential']:.2f} J")
    print(f"  Total: {energy['total']:.2f} J")

    print(f"\nOutput saved to: {scene.output_path}")
    print("=" * 60)


if __name__ == "__main__":
    main()
