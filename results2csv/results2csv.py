#!/usr/bin/env python3

import asyncio
import csv
import io
import json
import locale
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .models import ConversionOptions, ConversionResult, FailureReason

logger = logging.getLogger(__name__)


class ConversionError(Exception):
    """Base class for errors raised while converting a results file."""
    reason = FailureReason.READ

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputReadError(ConversionError):
    reason = FailureReason.READ


class InputParseError(ConversionError):
    reason = FailureReason.PARSE


class OutputWriteError(ConversionError):
    reason = FailureReason.WRITE


def _cell_text(value: Any) -> Optional[str]:
    """Text form of a record value, or None when the value is absent"""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        # whole floats print like JS numbers: 8.0 -> 8, 1e20 -> 100000000000000000000
        return str(int(value))
    if isinstance(value, (bool, int, float)):
        # json.dumps gives true/false and JS-like number text
        return json.dumps(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _json_cell(value: Any) -> str:
    text = _cell_text(value)
    return json.dumps(text if text is not None else "", ensure_ascii=False)


class Results2CSV:
    def __init__(self, options: Optional[ConversionOptions] = None):
        self.options = options or ConversionOptions()
        self.fieldnames: List[str] = []

    def _sort_records(self, records: List[Dict]) -> List[Dict]:
        """Order records by rollNo, highest first, using locale collation.

        Python's sort is stable even with reverse=True, so records sharing a
        rollNo keep the order they had in the input file.
        """
        def roll_no(record: Dict) -> str:
            value = record.get(config.SORT_FIELD)
            # strxfrm rejects embedded NUL characters
            text = "" if value is None else str(value).replace("\x00", "")
            return locale.strxfrm(text)

        return sorted(records, key=roll_no, reverse=True)

    def _extract_fields(self, records: List[Dict]) -> List[str]:
        """Base headers: record keys other than SGPA and instituteName"""
        special = (config.SGPA_FIELD, config.TRAILING_FIELD)
        if self.options.header_strategy == "union":
            sources = records
        else:
            sources = records[:1]

        fields: List[str] = []
        seen = set()
        for record in sources:
            for key in record:
                if key in special or key in seen:
                    continue
                seen.add(key)
                fields.append(key)
        return fields

    def _row_values(self, record: Dict, base_headers: List[str]) -> List[Any]:
        values = [record.get(header) for header in base_headers]

        sgpa = record.get(config.SGPA_FIELD)
        if not isinstance(sgpa, dict):
            sgpa = {}
        values.extend(sgpa.get(sem) for sem in config.SEMESTER_KEYS)

        values.append(record.get(config.TRAILING_FIELD))
        return values

    def _render(self, rows: List[List[Any]]) -> str:
        if self.options.quoting == "csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(self.fieldnames)
            for row in rows:
                writer.writerow(["" if v is None else _cell_text(v) for v in row])
            return buffer.getvalue()[:-1]

        lines = [",".join(self.fieldnames)]
        lines.extend(",".join(_json_cell(v) for v in row) for row in rows)
        return "\n".join(lines)

    def to_csv(self, records: List[Dict]) -> str:
        """Convert a list of result records to CSV text.

        Args:
            records: Records decoded from the results JSON array

        Returns:
            The CSV document, rows joined by a newline with no trailing
            newline. An empty list gives an empty string, without a header.
        """
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise InputParseError(
                    f"Expected an object at index {index}, got {type(record).__name__}"
                )

        if not records:
            self.fieldnames = []
            return ""

        ordered = self._sort_records(records)
        base_headers = self._extract_fields(ordered)
        self.fieldnames = base_headers + config.TRAILING_HEADERS
        logger.debug(f"Base headers: {base_headers}")

        rows = [self._row_values(record, base_headers) for record in ordered]
        try:
            return self._render(rows)
        except RecursionError as e:
            raise InputParseError(f"Record value nested too deeply to render: {e}")

    def _read_text(self, input_file: str) -> str:
        try:
            with open(input_file, "r", encoding=config.ENCODING) as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise InputReadError(f"Could not read {input_file}: {e}")

    def _parse_records(self, input_file: str, text: str) -> List[Dict]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InputParseError(f"Invalid JSON in {input_file}: {e}")
        except (ValueError, RecursionError) as e:
            # integer digit limit, or nesting too deep for the decoder
            raise InputParseError(f"Unsupported JSON in {input_file}: {e}")
        if not isinstance(data, list):
            raise InputParseError(
                f"Expected a JSON array in {input_file}, got {type(data).__name__}"
            )
        return data

    def _write_text(self, output_file: str, text: str):
        try:
            with open(output_file, "w", encoding=config.ENCODING, newline="") as f:
                f.write(text)
        except OSError as e:
            raise OutputWriteError(f"Could not write {output_file}: {e}")

    def _failed(self, input_file: str, output_file: str, error: ConversionError) -> ConversionResult:
        logger.error(f"Error converting {input_file} to CSV: {error.message}")
        return ConversionResult.failed(input_file, output_file, error.reason, error.message)

    def _succeeded(self, input_file: str, output_file: str, records: List[Dict]) -> ConversionResult:
        logger.info(f"CSV file has been saved to {output_file} ({len(records)} rows)")
        return ConversionResult.ok(input_file, output_file, len(records))

    def convert_file(self, input_file: str, output_file: str) -> ConversionResult:
        """Convert a results JSON file to a CSV file

        Errors are logged and reported through the returned result, never
        raised.
        """
        input_file, output_file = str(input_file), str(output_file)
        try:
            records = self._parse_records(input_file, self._read_text(input_file))
            csv_text = self.to_csv(records)
            self._write_text(output_file, csv_text)
        except ConversionError as e:
            return self._failed(input_file, output_file, e)
        return self._succeeded(input_file, output_file, records)

    async def convert_file_async(self, input_file: str, output_file: str) -> ConversionResult:
        """Same as convert_file, with the file reads and writes run off the event loop"""
        input_file, output_file = str(input_file), str(output_file)
        try:
            text = await asyncio.to_thread(self._read_text, input_file)
            records = self._parse_records(input_file, text)
            csv_text = self.to_csv(records)
            await asyncio.to_thread(self._write_text, output_file, csv_text)
        except ConversionError as e:
            return self._failed(input_file, output_file, e)
        return self._succeeded(input_file, output_file, records)


def use_system_collation():
    """Sort roll numbers with the collation of the user's locale (LC_COLLATE).

    Called by the entry points only; importing the package leaves the
    process locale alone.
    """
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Could not apply the system collation, sorting by code point: {e}")


def convert(input_file: str, output_file: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return Results2CSV(options).convert_file(input_file, output_file)


async def convert_async(input_file: str, output_file: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return await Results2CSV(options).convert_file_async(input_file, output_file)


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    parser = argparse.ArgumentParser(description='Convert a results JSON file to CSV format')
    parser.add_argument('input', nargs='?', default=config.DEFAULT_INPUT_PATH,
                        help='Input JSON file (default: out/results.json)')
    parser.add_argument('-o', '--output', help='Output CSV file (default: input name with .csv extension)')
    parser.add_argument('--union-headers', action='store_true',
                        help='Take base columns from every record instead of the first one')
    parser.add_argument('--csv-quoting', action='store_true',
                        help='Quote cells per RFC 4180 instead of JSON-encoding them')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
    use_system_collation()

    output = args.output or str(Path(args.input).with_suffix('.csv'))
    options = ConversionOptions(
        header_strategy="union" if args.union_headers else "first",
        quoting="csv" if args.csv_quoting else "json",
    )

    result = convert(args.input, output, options)
    if result.success:
        print(f"Successfully converted {args.input} to {output}")
        return 0

    print(f"Error: {result.failure.message}")
    return 1


if __name__ == '__main__':
    sys.exit(main())
