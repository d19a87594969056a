import re
from bs4 import BeautifulSoup

from aurora.core.errors import ParseError
from aurora.core.selection import RecordKind
from aurora.data.records import (
    Book, BookData, ChildExam, Course, CourseData, GpaData, Score
)

# Grade table columns, keyed by header text
GPA_COLUMNS = {
    '学年学期': 'semester',
    '课程代码': 'course_code',
    '课程名称': 'course_name',
    '课程类别': 'course_type',
    '学分': 'credit',
    '总评成绩': 'total',
    '最终': 'score',
    '绩点': 'grade_point',
}

EXAM_COLUMNS = {
    '课程序号': 'course_code',
    '课程名称': 'course_name',
    '考试类型': 'exam_type',
    '考试日期': 'date',
    '考试安排': 'time',
    '考试地点': 'location',
    '考场座位号': 'seat',
    '考试情况': 'status',
}

BOOK_COLUMNS = {
    '条码号': 'barcode',
    '题名': 'title',
    '著者': 'author',
    '借阅日期': 'loan_date',
    '应还日期': 'due_date',
    '馆藏地点': 'location',
}

ACTIVITY_SPLIT = re.compile(r'(?:var\s+)?activity\s*=\s*new\s+TaskActivity\(')
ACTIVITY_ARG = re.compile(r'"((?:[^"\\]|\\.)*)"|\b(null)\b')
ACTIVITY_INDEX = re.compile(r'index\s*=\s*(\d+)\s*\*\s*unitCount\s*\+\s*(\d+)\s*;')
UNIT_COUNT = re.compile(r'var\s+unitCount\s*=\s*(\d+)\s*;')
CODE_SUFFIX = re.compile(r'\s*\([^()]*\)\s*$')


def _find_table(soup, header, kind):
    """Return the first table whose header row contains ``header``."""
    for table in soup.find_all('table'):
        headers = [th.get_text(strip=True) for th in table.find_all('th')]
        if header in headers:
            return table
    raise ParseError(kind, f"no table with a '{header}' column")


def _read_rows(table, columns):
    """
    Read a header-led table into dicts keyed by the names in ``columns``.

    Rows with fewer cells than the header (placeholders such as a single
    "no data" cell) are skipped.
    """
    headers = [th.get_text(strip=True) for th in table.find_all('th')]
    rows = []
    for tr in table.find_all('tr'):
        cells = [td.get_text(strip=True) for td in tr.find_all('td')]
        if not cells or len(cells) < len(headers):
            continue
        row = {}
        for header, value in zip(headers, cells):
            if header in columns:
                row[columns[header]] = value
        rows.append(row)
    return rows


def _to_float(value, kind, name):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ParseError(kind, f"{name} is not a number: {value!r}") from None


def html2course(html):
    """
    Parse the course table page.

    The page renders its table from script blocks: each
    ``new TaskActivity(...)`` call is followed by ``index =D*unitCount+U;``
    lines naming the day (0 = Monday) and unit (0-based) it occupies.
    """
    kind = RecordKind.COURSE_TABLE
    if not html or not UNIT_COUNT.search(html):
        raise ParseError(kind, "course table script not found")

    chunks = ACTIVITY_SPLIT.split(html)[1:]
    courses = []
    for chunk in chunks:
        args_text, _, rest = chunk.partition(');')
        args = [m.group(1) for m in ACTIVITY_ARG.finditer(args_text)]
        if len(args) < 7:
            raise ParseError(kind, f"malformed activity: {args_text[:60]!r}")

        _, teacher, course_id, name, _, room, week_bits = args[:7]
        weeks = [i for i, bit in enumerate(week_bits or '') if bit == '1']

        units_by_day = {}
        for day, unit in ACTIVITY_INDEX.findall(rest):
            units_by_day.setdefault(int(day), []).append(int(unit) + 1)

        for day in sorted(units_by_day):
            courses.append(Course(
                course_id=CODE_SUFFIX.sub('', course_id or ''),
                name=CODE_SUFFIX.sub('', name or ''),
                teacher=teacher or '',
                room=room or '',
                weeks=weeks,
                weekday=day + 1,
                units=sorted(units_by_day[day])
            ))

    return CourseData(courses)


def html2gpa(html):
    """Parse the grade history page and compute the credit-weighted GPA."""
    kind = RecordKind.GPA
    soup = BeautifulSoup(html or '', 'html.parser')
    table = _find_table(soup, '课程名称', kind)

    scores = []
    for row in _read_rows(table, GPA_COLUMNS):
        grade_point = row.get('grade_point', '')
        scores.append(Score(
            semester=row.get('semester', ''),
            course_code=row.get('course_code', ''),
            course_name=row.get('course_name', ''),
            course_type=row.get('course_type', ''),
            credit=_to_float(row.get('credit'), kind, 'credit'),
            score=row.get('score') or row.get('total', ''),
            grade_point=_to_float(grade_point, kind, 'grade point') if grade_point else None
        ))

    graded = [s for s in scores if s.grade_point is not None]
    total_credits = sum(s.credit for s in graded)
    if total_credits:
        gpa = round(sum(s.credit * s.grade_point for s in graded) / total_credits, 2)
    else:
        gpa = 0.0

    return GpaData(gpa=gpa, total_credits=total_credits, scores=scores)


def html2exam_ids(html):
    """
    Exam batch identifiers listed by the exam index page, in page order.

    The first identifier is the batch the index page itself shows.
    """
    soup = BeautifulSoup(html or '', 'html.parser')
    select = soup.find('select', {'name': 'examBatch.id'})
    if select is None:
        raise ParseError(RecordKind.EXAM, "exam batch selector not found")
    return [option['value'] for option in select.find_all('option') if option.get('value')]


def html2exams(html):
    """Parse the exam rows of an exam index or exam batch page."""
    kind = RecordKind.EXAM
    soup = BeautifulSoup(html or '', 'html.parser')
    table = _find_table(soup, '课程名称', kind)

    exams = []
    for row in _read_rows(table, EXAM_COLUMNS):
        exams.append(ChildExam(
            course_code=row.get('course_code', ''),
            course_name=row.get('course_name', ''),
            exam_type=row.get('exam_type', ''),
            date=row.get('date', ''),
            time=row.get('time', ''),
            location=row.get('location', ''),
            seat=row.get('seat', ''),
            status=row.get('status', '')
        ))
    return exams


def html2books(html):
    """Parse the current loans table of the library page."""
    soup = BeautifulSoup(html or '', 'html.parser')
    table = _find_table(soup, '题名', RecordKind.LIBRARY_BOOK)

    books = [Book(**{name: row.get(name, '') for name in BOOK_COLUMNS.values()})
             for row in _read_rows(table, BOOK_COLUMNS)]
    return BookData(books)
