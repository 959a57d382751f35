"""
Date pattern compilation, parsing and rendering.

Patterns use the SimpleDateFormat letter vocabulary (``yyyy-MM-dd``,
``MM/dd/yy``, ``yyyy.MM.dd G 'at' HH:mm:ss z``...). A pattern is compiled once
into a DateFormatter which can then render instants and parse text repeatedly.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

PATTERN_LETTERS = "GyYMLwWDdFEuaHkKhmsSzZX"

# Letters rendered and parsed as numbers (M/L switch to text at width 3)
NUMERIC_LETTERS = frozenset("yYMLwWDdFuHkKhmsS")

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
MONTH_ABBREVIATIONS = tuple(name[:3] for name in MONTH_NAMES)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
DAY_ABBREVIATIONS = tuple(name[:3] for name in DAY_NAMES)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_GMT_OFFSET = re.compile(r"^(?:GMT|UTC)([+-])(\d{1,2}):?(\d{2})?$", re.IGNORECASE)

# Standard and daylight abbreviations accepted by z when parsing
ZONE_ABBREVIATIONS = {
    name: timedelta(hours=hours)
    for name, hours in (
        ("HST", -10), ("AKST", -9), ("AKDT", -8),
        ("PST", -8), ("PDT", -7), ("MST", -7), ("MDT", -6),
        ("CST", -6), ("CDT", -5), ("EST", -5), ("EDT", -4),
        ("WET", 0), ("WEST", 1), ("BST", 1), ("CET", 1), ("CEST", 2),
        ("EET", 2), ("EEST", 3), ("MSK", 3), ("JST", 9),
    )
}


class DatePatternError(ValueError):
    """Raised when a date pattern is syntactically invalid."""

    def __init__(self, pattern: str, message: str):
        self.pattern = pattern
        super().__init__(f"{message} in pattern '{pattern}'")


class DateParseError(ValueError):
    """Raised when text cannot be parsed with a date pattern."""

    def __init__(self, text: object, pattern: str, reason: str | None = None):
        self.text = text
        self.pattern = pattern
        message = f'Unparseable date: "{text}" for pattern \'{pattern}\''
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


@dataclass(frozen=True)
class PatternToken:
    """A literal run of text or a repeated pattern letter."""

    letter: str | None
    count: int = 0
    text: str = ""

    @property
    def is_literal(self) -> bool:
        return self.letter is None

    @property
    def is_numeric(self) -> bool:
        if self.letter in ("M", "L"):
            return self.count < 3
        return self.letter in NUMERIC_LETTERS


def tokenize(pattern: str) -> list[PatternToken]:
    """
    Split a pattern into literal and field tokens.

    Args:
        pattern: Date pattern string

    Returns:
        Ordered list of tokens, adjacent literals merged

    Raises:
        DatePatternError: If the pattern has an illegal letter, an unterminated
            quote, or an ISO 8601 zone wider than three letters
    """
    if pattern is None:
        raise DatePatternError("None", "Pattern must not be null")

    tokens: list[PatternToken] = []
    literal: list[str] = []
    i = 0
    n = len(pattern)

    def flush_literal() -> None:
        if literal:
            tokens.append(PatternToken(None, text="".join(literal)))
            literal.clear()

    while i < n:
        c = pattern[i]
        if c == "'":
            if i + 1 < n and pattern[i + 1] == "'":
                literal.append("'")
                i += 2
                continue
            j = i + 1
            while True:
                if j >= n:
                    raise DatePatternError(pattern, "Unterminated quote")
                if pattern[j] == "'":
                    if j + 1 < n and pattern[j + 1] == "'":
                        literal.append("'")
                        j += 2
                        continue
                    break
                literal.append(pattern[j])
                j += 1
            i = j + 1
        elif c.isascii() and c.isalpha():
            if c not in PATTERN_LETTERS:
                raise DatePatternError(pattern, f"Illegal pattern character '{c}'")
            j = i
            while j < n and pattern[j] == c:
                j += 1
            count = j - i
            if c == "X" and count > 3:
                raise DatePatternError(pattern, f"Invalid ISO 8601 format: length={count}")
            flush_literal()
            tokens.append(PatternToken(c, count))
            i = j
        else:
            literal.append(c)
            i += 1

    flush_literal()
    return tokens


def is_valid_pattern(pattern: str) -> bool:
    try:
        tokenize(pattern)
    except DatePatternError:
        return False
    return True


def _us_week_of_year(day: date) -> tuple[int, int]:
    """Return (week_year, week) with Sunday-first weeks, week 1 holding January 1."""
    week_start = day - timedelta(days=(day.weekday() + 1) % 7)
    if day.year < 9999 and week_start + timedelta(days=6) >= date(day.year + 1, 1, 1):
        return day.year + 1, 1
    jan1 = date(day.year, 1, 1)
    first_week_start = jan1 - timedelta(days=(jan1.weekday() + 1) % 7)
    return day.year, (week_start - first_week_start).days // 7 + 1


def _us_week_of_month(day: date) -> int:
    first = day.replace(day=1)
    offset = (first.weekday() + 1) % 7
    return (day.day - 1 + offset) // 7 + 1


def _format_offset(offset: timedelta | None, separator: str, with_minutes: bool = True) -> str:
    total = int((offset or timedelta(0)).total_seconds() // 60)
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    if not with_minutes:
        return f"{sign}{hours:02d}"
    return f"{sign}{hours:02d}{separator}{minutes:02d}"


def resolve_zone(name: str) -> tzinfo:
    """
    Resolve a zone name into a tzinfo.

    Accepts ``UTC``, ``GMT``, ``Z``, ``GMT+hh:mm`` (or ``UTC+hh:mm``) offsets
    and IANA names.

    Raises:
        ValueError: If the zone is unknown
    """
    if name.upper() in ("UTC", "GMT", "Z"):
        return timezone.utc
    match = _GMT_OFFSET.match(name)
    if match:
        sign, hours, minutes = match.groups()
        offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
        return timezone(-offset if sign == "-" else offset)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone '{name}'") from e


class DateFormatter:
    """
    A compiled date pattern.

    Instances hold no mutable state after construction and can be shared
    between threads and reused across records.
    """

    def __init__(
        self,
        pattern: str,
        tz: tzinfo = timezone.utc,
        two_digit_year_start: datetime | None = None,
    ):
        """
        Compile a pattern.

        Args:
            pattern: SimpleDateFormat-style pattern
            tz: Zone used for rendering and for parsed text that carries no zone
            two_digit_year_start: Start of the 100-year window used to resolve
                two-digit years (default: 80 years before now)

        Raises:
            DatePatternError: If the pattern is invalid
        """
        self.pattern = pattern
        self.tz = tz
        self.tokens = tokenize(pattern)
        if two_digit_year_start is None:
            now = datetime.now(tz)
            try:
                two_digit_year_start = now.replace(year=now.year - 80)
            except ValueError:
                # February 29 with no counterpart 80 years back
                two_digit_year_start = now.replace(year=now.year - 80, day=28)
        if two_digit_year_start.tzinfo is None:
            two_digit_year_start = two_digit_year_start.replace(tzinfo=tz)
        self.two_digit_year_start = two_digit_year_start
        self._regex, self._groups = self._compile_parser()

    def __repr__(self) -> str:
        return f"DateFormatter(pattern={self.pattern!r}, tz={self.tz})"

    # Rendering

    def format_epoch_millis(self, millis: int) -> str:
        """Render a millisecond epoch timestamp."""
        if isinstance(millis, bool) or not isinstance(millis, int):
            raise TypeError(f"Epoch milliseconds must be an integer, got {type(millis).__name__}")
        return self.format(EPOCH + timedelta(milliseconds=millis))

    def format(self, moment: datetime) -> str:
        """
        Render an instant.

        Naive datetimes are taken to be in the formatter's zone.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=self.tz)
        moment = moment.astimezone(self.tz)
        return "".join(
            token.text if token.is_literal else self._format_field(token, moment)
            for token in self.tokens
        )

    def _format_field(self, token: PatternToken, moment: datetime) -> str:
        letter, count = token.letter, token.count

        if letter == "G":
            return "AD"
        if letter in ("y", "Y"):
            year = moment.year if letter == "y" else _us_week_of_year(moment.date())[0]
            if count == 2:
                return f"{year % 100:02d}"
            return str(year).zfill(count)
        if letter in ("M", "L"):
            if count >= 4:
                return MONTH_NAMES[moment.month - 1]
            if count == 3:
                return MONTH_ABBREVIATIONS[moment.month - 1]
            return str(moment.month).zfill(count)
        if letter == "E":
            names = DAY_NAMES if count >= 4 else DAY_ABBREVIATIONS
            return names[moment.weekday()]
        if letter == "a":
            return "AM" if moment.hour < 12 else "PM"
        if letter == "z":
            if isinstance(moment.tzinfo, timezone) and moment.utcoffset():
                return "GMT" + _format_offset(moment.utcoffset(), ":")
            return moment.tzname() or "GMT" + _format_offset(moment.utcoffset(), ":")
        if letter == "Z":
            return _format_offset(moment.utcoffset(), "")
        if letter == "X":
            if not moment.utcoffset():
                return "Z"
            return _format_offset(moment.utcoffset(), ":" if count == 3 else "", with_minutes=count > 1)

        value = {
            "w": lambda: _us_week_of_year(moment.date())[1],
            "W": lambda: _us_week_of_month(moment.date()),
            "D": lambda: moment.timetuple().tm_yday,
            "d": lambda: moment.day,
            "F": lambda: (moment.day - 1) // 7 + 1,
            "u": lambda: moment.isoweekday(),
            "H": lambda: moment.hour,
            "k": lambda: moment.hour or 24,
            "K": lambda: moment.hour % 12,
            "h": lambda: moment.hour % 12 or 12,
            "m": lambda: moment.minute,
            "s": lambda: moment.second,
            "S": lambda: moment.microsecond // 1000,
        }[letter]()
        return str(value).zfill(count)

    # Parsing

    def _compile_parser(self) -> tuple[re.Pattern, list[PatternToken]]:
        parts: list[str] = []
        groups: list[PatternToken] = []
        for index, token in enumerate(self.tokens):
            if token.is_literal:
                parts.append(re.escape(token.text))
                continue
            following = self.tokens[index + 1] if index + 1 < len(self.tokens) else None
            adjacent_numeric = following is not None and not following.is_literal and following.is_numeric
            parts.append(f"({self._field_regex(token, adjacent_numeric)})")
            groups.append(token)
        return re.compile("".join(parts)), groups

    @staticmethod
    def _field_regex(token: PatternToken, adjacent_numeric: bool) -> str:
        letter, count = token.letter, token.count
        if token.is_numeric:
            return rf"\d{{{count}}}" if adjacent_numeric else r"\d+"
        if letter in ("M", "L"):
            names = sorted(MONTH_NAMES + MONTH_ABBREVIATIONS, key=len, reverse=True)
            return "(?i:" + "|".join(names) + ")"
        if letter == "E":
            names = sorted(DAY_NAMES + DAY_ABBREVIATIONS, key=len, reverse=True)
            return "(?i:" + "|".join(names) + ")"
        if letter == "a":
            return "(?i:AM|PM)"
        if letter == "G":
            return "(?i:AD|BC)"
        if letter == "z":
            return r"(?i:(?:GMT|UTC)[+-]\d{1,2}(?::?\d{2})?|[A-Za-z][A-Za-z0-9_/+\-]*)"
        if letter == "Z":
            return r"[+-]\d{4}"
        # X
        return r"Z|[+-]\d{2}(?::?\d{2})?"

    def parse(self, text: str) -> datetime:
        """
        Parse text into a timezone-aware datetime.

        Parsing is lenient: text after the last pattern field is ignored and
        out-of-range fields roll over into the next unit, so ``02/30/24``
        with ``MM/dd/yy`` is March 1, 2024.

        Args:
            text: Text whose beginning matches the pattern

        Returns:
            Parsed instant

        Raises:
            DateParseError: If the text does not match the pattern or names a
                date outside the supported range
        """
        if not isinstance(text, str):
            raise DateParseError(text, self.pattern, f"expected text, got {type(text).__name__}")
        match = self._regex.match(text)
        if match is None:
            raise DateParseError(text, self.pattern)

        fields: dict[str, tuple[PatternToken, str]] = {}
        for token, value in zip(self._groups, match.groups()):
            fields[token.letter] = (token, value)

        try:
            return self._build_datetime(fields)
        except (ValueError, OverflowError) as e:
            raise DateParseError(text, self.pattern, str(e)) from e

    def _resolve_year(self, token: PatternToken, raw: str) -> tuple[int, bool]:
        """Return the year and whether it was an abbreviated two-digit year."""
        year = int(raw)
        if token.count <= 2 and len(raw) == 2:
            start_year = self.two_digit_year_start.year
            candidate = start_year // 100 * 100 + year
            if year < start_year % 100:
                candidate += 100
            return candidate, True
        return year, False

    def _build_datetime(self, fields: dict[str, tuple[PatternToken, str]]) -> datetime:
        year, abbreviated = 1970, False
        for letter in ("y", "Y"):
            if letter in fields:
                year, abbreviated = self._resolve_year(*fields[letter])
                break
        if "G" in fields and fields["G"][1].upper() == "BC":
            year = 1 - year

        local = self._local_datetime(fields, year)
        if abbreviated and self._attach_zone(fields, local) < self.two_digit_year_start:
            local = self._local_datetime(fields, year + 100)
        return self._attach_zone(fields, local)

    @staticmethod
    def _local_datetime(fields: dict[str, tuple[PatternToken, str]], year: int) -> datetime:
        """Roll the parsed fields forward from January 1 of the year."""

        def number(letter: str) -> int:
            return int(fields[letter][1]) if letter in fields else 0

        month = 1
        for letter in ("M", "L"):
            if letter in fields:
                token, raw = fields[letter]
                if token.is_numeric:
                    month = int(raw)
                else:
                    lowered = raw.lower()
                    month = next(
                        i + 1 for i, name in enumerate(MONTH_NAMES) if name.lower().startswith(lowered[:3])
                    )
                break

        pm = "a" in fields and fields["a"][1].upper() == "PM"
        if "H" in fields:
            hour = number("H")
        elif "k" in fields:
            hour = number("k") % 24
        elif "K" in fields:
            hour = number("K") + (12 if pm else 0)
        elif "h" in fields:
            hour = number("h") % 12 + (12 if pm else 0)
        else:
            hour = 12 if pm else 0

        if "D" in fields and "d" not in fields and not ({"M", "L"} & fields.keys()):
            days = number("D") - 1
        else:
            days = (number("d") - 1) if "d" in fields else 0

        year_shift, month_index = divmod(month - 1, 12)
        start = datetime(year + year_shift, month_index + 1, 1)
        return start + timedelta(
            days=days,
            hours=hour,
            minutes=number("m"),
            seconds=number("s"),
            milliseconds=number("S"),
        )

    def _attach_zone(self, fields: dict[str, tuple[PatternToken, str]], local: datetime) -> datetime:
        for letter in ("z", "Z", "X"):
            if letter in fields:
                return local.replace(tzinfo=self._parse_zone(letter, fields[letter][1], local))
        return local.replace(tzinfo=self.tz)

    def _parse_zone(self, letter: str, raw: str, local: datetime) -> tzinfo:
        if raw.upper() == "Z" and letter != "Z":
            return timezone.utc
        if letter == "z":
            # The formatter's own zone renders abbreviations such as PDT/PST
            if raw.upper() == (local.replace(tzinfo=self.tz).tzname() or "").upper():
                return self.tz
            if raw.upper() in ZONE_ABBREVIATIONS:
                return timezone(ZONE_ABBREVIATIONS[raw.upper()], raw.upper())
            return resolve_zone(raw)
        digits = raw.replace(":", "")
        sign = -1 if digits[0] == "-" else 1
        hours = int(digits[1:3])
        minutes = int(digits[3:5]) if len(digits) > 3 else 0
        return timezone(sign * timedelta(hours=hours, minutes=minutes))
