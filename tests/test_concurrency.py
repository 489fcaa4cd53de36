import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from school_records.application import enrollment
from school_records.domain.errors import CapacityExceeded
from school_records.infrastructure.models import Base, Class, Student


@pytest.fixture
def file_sessions(tmp_path):
    """Файловая SQLite: у каждого потока своё соединение"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


def test_last_seat_goes_to_exactly_one_student(file_sessions):
    """Два параллельных зачисления на последнее место: успешно только одно"""
    with file_sessions() as db:
        room = Class(name="Math", section="A")
        db.add(room)
        db.flush()
        db.add_all([Student(name=f"Seated {i}", age=10, class_id=room.id) for i in range(4)])
        racers = [Student(name="Left", age=10), Student(name="Right", age=10)]
        db.add_all(racers)
        db.commit()
        class_id = room.id
        racer_ids = [s.id for s in racers]

    barrier = threading.Barrier(len(racer_ids))
    outcomes = {}

    def attempt(student_id):
        with file_sessions() as db:
            barrier.wait()
            try:
                enrollment.enroll_student(db, class_id, student_id)
                outcomes[student_id] = "ok"
            except CapacityExceeded:
                outcomes[student_id] = "full"

    threads = [threading.Thread(target=attempt, args=(sid,)) for sid in racer_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes.values()) == ["full", "ok"]
    with file_sessions() as db:
        assert enrollment.count_students(db, class_id) == enrollment.MAX_STUDENTS_PER_CLASS
