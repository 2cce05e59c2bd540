"""Unit tests for JointTrajectory storage and sampling."""

import numpy as np
import pytest

from splinetime import IterativeSplineParameterization, JointGroup, JointTrajectory

pytestmark = pytest.mark.unit


@pytest.fixture
def group():
    return JointGroup.from_limits(["j1", "j2"], velocity=1.0, acceleration=2.0)


@pytest.fixture
def traj(group):
    positions = np.array([[0.0, 0.0], [0.5, -0.2], [1.0, 0.3], [1.5, 0.1]])
    return JointTrajectory.from_positions(positions, group)


class TestStorage:
    """Construction and accessors."""

    def test_defaults_filled_with_zeros(self, traj):
        assert traj.waypoint_count == 4
        assert traj.joint_count == 2
        assert len(traj) == 4
        np.testing.assert_array_equal(traj.velocities, np.zeros((4, 2)))
        np.testing.assert_array_equal(traj.accelerations, np.zeros((4, 2)))
        np.testing.assert_array_equal(traj.durations, np.zeros(4))
        np.testing.assert_array_equal(traj[1], [0.5, -0.2])

    def test_empty_list_has_no_waypoints(self, group):
        traj = JointTrajectory(group=group, positions=[])
        assert traj.empty
        assert traj.positions.shape == (0, 2)
        assert traj.durations.shape == (0,)

    def test_joint_count_must_match_group(self, group):
        with pytest.raises(ValueError, match="group"):
            JointTrajectory(group=group, positions=np.zeros((4, 3)))

    def test_boundary_conditions_from_constructor(self, group):
        traj = JointTrajectory.from_positions(
            np.zeros((4, 2)),
            group,
            initial_velocity=[0.1, 0.2],
            final_acceleration=[-0.3, 0.4],
        )
        np.testing.assert_array_equal(traj.velocities[0], [0.1, 0.2])
        np.testing.assert_array_equal(traj.velocities[-1], [0.0, 0.0])
        np.testing.assert_array_equal(traj.accelerations[-1], [-0.3, 0.4])

    def test_variable_accessors(self, traj):
        traj.set_variable_position(2, 1, 0.7)
        traj.set_variable_velocity(0, 0, 0.25)
        traj.set_variable_acceleration(3, 1, -0.5)

        assert traj.get_variable_position(2, 1) == 0.7
        assert traj.get_variable_velocity(0, 0) == 0.25
        assert traj.get_variable_acceleration(3, 1) == -0.5

    def test_negative_duration_rejected(self, traj):
        traj.set_waypoint_duration_from_previous(1, 0.5)
        assert traj.get_waypoint_duration_from_previous(1) == 0.5
        with pytest.raises(ValueError, match="non-negative"):
            traj.set_waypoint_duration_from_previous(1, -0.1)

    def test_insert_waypoint(self, traj):
        traj.insert_waypoint(1, [0.1, 0.1], velocities=[0.2, 0.0], duration_from_previous=0.3)

        assert traj.waypoint_count == 5
        np.testing.assert_array_equal(traj.positions[1], [0.1, 0.1])
        np.testing.assert_array_equal(traj.positions[2], [0.5, -0.2])
        np.testing.assert_array_equal(traj.velocities[1], [0.2, 0.0])
        np.testing.assert_array_equal(traj.accelerations[1], [0.0, 0.0])
        assert traj.durations[1] == 0.3

    def test_insert_waypoint_append_and_range(self, traj):
        traj.insert_waypoint(4, [2.0, 0.0])
        np.testing.assert_array_equal(traj.positions[-1], [2.0, 0.0])

        with pytest.raises(IndexError):
            traj.insert_waypoint(7, [0.0, 0.0])
        with pytest.raises(ValueError, match="positions"):
            traj.insert_waypoint(0, [0.0, 0.0, 0.0])

    def test_copy_is_independent(self, traj):
        dup = traj.copy()
        dup.positions[0, 0] = 9.0
        dup.durations[1] = 1.0
        assert traj.positions[0, 0] == 0.0
        assert traj.durations[1] == 0.0

    def test_time_from_start(self, traj):
        for i, d in enumerate([0.0, 0.5, 1.0, 0.25]):
            traj.set_waypoint_duration_from_previous(i, d)
        np.testing.assert_allclose(traj.time_from_start(), [0.0, 0.5, 1.5, 1.75])
        assert traj.duration == pytest.approx(1.75)

    def test_interpolate(self):
        traj = JointTrajectory.interpolate([0.0, 1.0], [1.0, -1.0], n_samples=5)
        assert traj.waypoint_count == 5
        np.testing.assert_allclose(traj.positions[2], [0.5, 0.0])
        np.testing.assert_array_equal(traj.positions[-1], [1.0, -1.0])

        with pytest.raises(ValueError):
            JointTrajectory.interpolate([0.0], [1.0, 2.0], n_samples=3)


class TestUnwind:
    def test_only_continuous_joints_unwound(self):
        group = JointGroup.from_limits(
            ["a", "b"], velocity=1.0, acceleration=1.0, continuous=[True, False]
        )
        positions = np.array([[3.0, 3.0], [-3.0, -3.0], [-2.5, -2.5]])
        traj = JointTrajectory(group=group, positions=positions)

        traj.unwind()

        np.testing.assert_allclose(traj.positions[:, 0], [3.0, 2 * np.pi - 3.0, 2 * np.pi - 2.5])
        np.testing.assert_array_equal(traj.positions[:, 1], [3.0, -3.0, -2.5])

    def test_no_group_is_noop(self):
        traj = JointTrajectory(group=None, positions=np.array([[3.0], [-3.0]]))
        traj.unwind()
        np.testing.assert_array_equal(traj.positions[:, 0], [3.0, -3.0])


class TestSample:
    """Fixed-interval evaluation of a parameterized trajectory."""

    @pytest.fixture
    def timed(self, group):
        traj = JointTrajectory.from_positions(
            np.array([[0.0, 0.0], [0.4, -0.2], [1.0, 0.3], [1.3, 0.5], [1.5, 0.2]]),
            group,
            initial_velocity=[0.1, 0.0],
            final_velocity=[0.0, -0.05],
        )
        assert IterativeSplineParameterization().compute_time_stamps(traj)
        return traj

    def test_endpoints_and_duration(self, timed):
        times, pos, vel, acc = timed.sample(0.01)

        assert times[0] == 0.0
        assert times[-1] == pytest.approx(timed.duration)
        assert np.all(np.diff(times) > 0)
        np.testing.assert_allclose(pos[0], timed.positions[0], atol=1e-12)
        np.testing.assert_allclose(pos[-1], timed.positions[-1], atol=1e-12)
        np.testing.assert_allclose(vel[0], [0.1, 0.0], atol=1e-9)
        np.testing.assert_allclose(vel[-1], [0.0, -0.05], atol=1e-9)
        np.testing.assert_allclose(acc[0], timed.accelerations[0], atol=1e-9)

    def test_passes_through_waypoints(self, timed):
        knots = timed.time_from_start()
        # Interval divides the first segment, so one sample lands on knot 1
        times, pos, _, _ = timed.sample(knots[1] / 10)
        idx = np.argmin(np.abs(times - knots[1]))
        np.testing.assert_allclose(pos[idx], timed.positions[1], atol=1e-9)

    def test_velocity_continuous_across_knots(self, timed):
        _, _, vel, _ = timed.sample(1e-3)
        # No jump larger than acceleration limit * dt (plus slack)
        assert np.max(np.abs(np.diff(vel, axis=0))) <= 2.0 * 1e-3 + 1e-6

    def test_requires_parameterization(self, traj):
        with pytest.raises(ValueError, match="not time parameterized"):
            traj.sample()

    def test_invalid_interval(self, timed):
        with pytest.raises(ValueError, match="dt must be positive"):
            timed.sample(0.0)
