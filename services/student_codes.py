"""
Student Code Codec
Class + roll number <-> canonical student code.

    nursery / lkg / ukg  ->  CB25N007, CB25L012, CB25U120
    classes 1 to 10      ->  CB25-05-12
"""
import re
from typing import NamedTuple, Optional

CODE_PREFIX = "CB25"
MAX_ROLL_NUMBER = 999

PRE_PRIMARY_LETTERS = {"nursery": "N", "lkg": "L", "ukg": "U"}
GRADE_CLASSES = [str(n) for n in range(1, 11)]
VALID_CLASSES = list(PRE_PRIMARY_LETTERS) + GRADE_CLASSES

_PRE_PRIMARY_PATTERN = re.compile(rf"^{CODE_PREFIX}([NLU])([0-9]{{3}})$", re.IGNORECASE)
_GRADE_PATTERN = re.compile(rf"^{CODE_PREFIX}-(0[1-9]|10)-([1-9][0-9]{{0,2}})$", re.IGNORECASE)
_LETTER_TO_CLASS = {letter: name for name, letter in PRE_PRIMARY_LETTERS.items()}

# str.isdigit() "²" jaise characters bhi maan leta hai, int() nahi
_ASCII_DIGITS = re.compile(r"[0-9]+")


class StudentCode(NamedTuple):
    classCode: str
    rollNumber: str
    fullCode: str
    type: str


def normalize_class_code(class_code) -> str:
    """'LKG' -> 'lkg', '05' -> '5'"""
    value = str(class_code).strip().lower()
    if _ASCII_DIGITS.fullmatch(value):
        return str(int(value))
    return value


def is_valid_class_code(class_code) -> bool:
    if class_code is None:
        return False
    return str(class_code).strip().lower() in VALID_CLASSES


def _parse_roll(roll) -> Optional[int]:
    value = str(roll).strip()
    if not _ASCII_DIGITS.fullmatch(value):
        return None
    number = int(value)
    if number < 1 or number > MAX_ROLL_NUMBER:
        return None
    return number


def generate_student_code(student_class, student_roll) -> Optional[str]:
    """Returns None when the class or roll number is not acceptable."""
    if student_class is None or student_roll is None:
        return None
    roll = _parse_roll(student_roll)
    if roll is None:
        return None

    class_code = normalize_class_code(student_class)
    if class_code in PRE_PRIMARY_LETTERS:
        return f"{CODE_PREFIX}{PRE_PRIMARY_LETTERS[class_code]}{roll:03d}"
    if class_code in GRADE_CLASSES:
        return f"{CODE_PREFIX}-{int(class_code):02d}-{roll}"
    return None


def parse_student_code(student_code) -> Optional[StudentCode]:
    if not student_code:
        return None
    code = str(student_code).strip()

    match = _PRE_PRIMARY_PATTERN.match(code)
    if match:
        class_code = _LETTER_TO_CLASS[match.group(1).upper()]
        roll = int(match.group(2))
        if roll < 1:
            return None
        return StudentCode(class_code, str(roll), code.upper(), class_code)

    match = _GRADE_PATTERN.match(code)
    if match:
        return StudentCode(str(int(match.group(1))), match.group(2), code.upper(), "class")

    return None
