"""
Record transformers: raw backend payloads to typed records.

Every function raises ``ParseError`` when its payload cannot be read.
"""

from aurora.scrapers.requests_scraper.html_parser import (
    html2books, html2course, html2exam_ids, html2exams, html2gpa
)
from aurora.scrapers.requests_scraper.json_parser import (
    json2card, json2net, json2student
)

__all__ = [
    'html2books', 'html2course', 'html2exam_ids', 'html2exams', 'html2gpa',
    'json2card', 'json2net', 'json2student',
]
