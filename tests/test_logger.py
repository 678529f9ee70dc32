import csv

import pytest

from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.frame import Frame3
from kinelab.dynamics.state import ObjState
from kinelab.logger import CSVLogger
from kinelab.spatial.vector3 import Vector3


def read_rows(path):
    with open(path, "r", newline="") as f:
        return list(csv.reader(f))


@pytest.fixture
def frame():
    return Frame3(0.5, [ObjState(Vector3(1.0, 2.0, 3.0), velocity=Vector3(1.0, 0.0, 0.0))])


def test_logger_basic_io(tmp_path, box_body, frame):
    """Logger creates the file and writes header + data."""
    log_path = tmp_path / "basic.csv"
    with CSVLogger(log_path, buffer_size=1) as logger:
        logger.log(frame, [box_body])

    rows = read_rows(log_path)
    assert len(rows) == 2
    header = rows[0]
    assert header[0] == "t"
    assert len(header) == 1 + 13
    assert header[1:4] == ["box.p_x", "box.p_y", "box.p_z"]
    assert header[4:8] == ["box.q_x", "box.q_y", "box.q_z", "box.q_w"]
    assert header[-1] == "box.w_z"

    values = [float(x) for x in rows[1]]
    assert values[0] == 0.5
    assert values[1:4] == [1.0, 2.0, 3.0]
    assert values[4:8] == [0.0, 0.0, 0.0, 1.0]
    assert values[8:11] == [1.0, 0.0, 0.0]


def test_logger_buffering(tmp_path, box_body, frame):
    """Rows are held until the buffer fills or flush() is called."""
    log_path = tmp_path / "buffer.csv"
    logger = CSVLogger(log_path, buffer_size=5)
    for _ in range(3):
        logger.log(frame, [box_body])
    assert logger.rows_written == 0
    assert len(read_rows(log_path)) == 1  # header only

    logger.flush()
    assert logger.rows_written == 3
    assert len(read_rows(log_path)) == 4

    for _ in range(5):
        logger.log(frame, [box_body])
    assert logger.rows_written == 8
    logger.close()
    assert not logger.is_open


def test_logger_fields(tmp_path, box_body, frame):
    log_path = tmp_path / "fields.csv"
    with CSVLogger(log_path, fields=["p", "ke"]) as logger:
        assert logger.header([box_body]) == ["t", "box.p_x", "box.p_y", "box.p_z", "box.ke"]
        logger.log(frame, [box_body])

    rows = read_rows(log_path)
    assert float(rows[1][-1]) == pytest.approx(1.5)


def test_logger_invalid_arguments(tmp_path):
    with pytest.raises(ValueError, match="Invalid fields"):
        CSVLogger(tmp_path / "x.csv", fields=["p", "force"])
    with pytest.raises(ValueError, match="buffer_size"):
        CSVLogger(tmp_path / "x.csv", buffer_size=0)


def test_logger_count_mismatch(tmp_path, box_body):
    logger = CSVLogger(tmp_path / "x.csv")
    with pytest.raises(ValueError, match="2 states but 1 bodies"):
        logger.log(Frame3(0.0, [ObjState(), ObjState()]), [box_body])
    logger.close()


def test_logger_creates_directories(tmp_path, box_body, frame):
    log_path = tmp_path / "nested" / "dir" / "run.csv"
    with CSVLogger(log_path) as logger:
        logger.log(frame, [box_body])
    assert log_path.exists()
    assert logger.rows_written == 1


def test_logger_rejects_new_bodies_after_header(tmp_path, box_body, frame):
    with CSVLogger(tmp_path / "run.csv") as logger:
        logger.log(frame, [box_body])
        with pytest.raises(ValueError, match="Header was written for bodies"):
            logger.log(frame, [RigidBody("ball", 1.0)])
    assert len(read_rows(tmp_path / "run.csv")) == 2
