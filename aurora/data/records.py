"""
Typed records produced by the payload parsers.

One record type per ``RecordKind``; list-valued records keep the order in
which entries appear in the source pages.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List


@dataclass
class StudentData:
    student_id: str
    name: str
    gender: str = ''
    college: str = ''
    major: str = ''
    class_name: str = ''
    identity: str = ''


@dataclass
class Course:
    """
    One scheduled activity of a course.

    Attributes:
        weeks: Teaching weeks, 1-based.
        weekday: 1 for Monday through 7 for Sunday.
        units: Class periods occupied on that day, 1-based.
    """
    course_id: str
    name: str
    teacher: str
    room: str
    weeks: List[int] = field(default_factory=list)
    weekday: int = 0
    units: List[int] = field(default_factory=list)


@dataclass
class CourseData:
    courses: List[Course] = field(default_factory=list)


@dataclass
class Score:
    semester: str
    course_code: str
    course_name: str
    course_type: str
    credit: float
    score: str
    grade_point: float = None


@dataclass
class GpaData:
    gpa: float
    total_credits: float
    scores: List[Score] = field(default_factory=list)


@dataclass
class ChildExam:
    course_code: str
    course_name: str
    exam_type: str = ''
    date: str = ''
    time: str = ''
    location: str = ''
    seat: str = ''
    status: str = ''


@dataclass
class ExamData:
    child_exams: List[ChildExam] = field(default_factory=list)


@dataclass
class CardTransaction:
    time: str
    place: str
    amount: float
    balance: float = None


@dataclass
class CardData:
    balance: float
    transactions: List[CardTransaction] = field(default_factory=list)


@dataclass
class NetData:
    balance: float
    used_flow: str = ''
    used_time: str = ''
    package: str = ''


@dataclass
class Book:
    barcode: str
    title: str
    author: str = ''
    loan_date: str = ''
    due_date: str = ''
    location: str = ''


@dataclass
class BookData:
    books: List[Book] = field(default_factory=list)


def to_dict(results) -> Dict[str, Any]:
    """Convert a result set into plain JSON-able data keyed by kind name."""
    return {kind.name.lower(): asdict(record) for kind, record in results.items()}
