"""Streaming CSV reader enforcing the catalog import header contract."""

import codecs
import csv
import io
import logging
import re
from collections.abc import Iterator
from typing import BinaryIO

import chardet

from catalog.models.row import CsvRow, MalformedRow

logger = logging.getLogger(__name__)

# Header contract, in order, mapped to CsvRow field names.
HEADER_FIELDS: dict[str, str] = {
    "Authors": "authors",
    "Title": "title",
    "Genre": "genre",
    "Description": "description",
    "Edition": "edition",
    "Publisher": "publisher",
    "Year": "year",
    "Format": "format",
    "Pages": "pages",
    "Country": "country",
    "ISBN": "isbn",
}
EXPECTED_HEADERS: tuple[str, ...] = tuple(HEADER_FIELDS)

UTF8_BOM = "\ufeff"

# Bytes inspected when deciding how to decode the upload.
ENCODING_SAMPLE_BYTES = 64 * 1024

# chardet guesses below this confidence are treated as unreadable.
MIN_ENCODING_CONFIDENCE = 0.5

# Undecodable bytes survive decoding as lone surrogates (surrogateescape).
_ESCAPED_BYTE = re.compile("[\udc80-\udcff]")


class CsvSchemaError(ValueError):
    """Raised when an import file cannot be read or its header is wrong."""


def _has_utf8_multibyte(sample: bytes) -> bool:
    """True if ``sample`` holds at least one valid multi-byte UTF-8 sequence."""
    text = sample.decode("utf-8", errors="surrogateescape")
    return any(ch > "\x7f" and not _ESCAPED_BYTE.match(ch) for ch in text)


def detect_encoding(stream: BinaryIO) -> str:
    """Choose the text encoding for a binary CSV stream.

    UTF-8 (with or without a BOM) is expected. A sample with stray
    invalid bytes is still read as UTF-8 when it also holds valid
    multi-byte sequences; the offending rows are reported by the reader.
    Only a sample with no UTF-8 multi-byte text at all is handed to
    chardet. The stream position is restored before returning.

    Args:
        stream: Seekable binary stream positioned at the start of the file.

    Returns:
        A codec name usable with io.TextIOWrapper.

    Raises:
        CsvSchemaError: If no usable encoding can be determined.
    """
    start = stream.tell()
    sample = stream.read(ENCODING_SAMPLE_BYTES)
    stream.seek(start)

    try:
        # Incremental decode tolerates a multi-byte character cut at the sample edge
        codecs.getincrementaldecoder("utf-8")().decode(sample, final=False)
        return "utf-8-sig"
    except UnicodeDecodeError:
        pass

    if _has_utf8_multibyte(sample):
        logger.warning("File is mostly UTF-8 but contains invalid bytes")
        return "utf-8-sig"

    detected = chardet.detect(sample)
    encoding = detected.get("encoding")
    confidence = detected.get("confidence") or 0
    if not encoding:
        raise CsvSchemaError("Unable to read file: unknown text encoding.")
    if confidence < MIN_ENCODING_CONFIDENCE:
        raise CsvSchemaError(
            f"Unable to read file: text encoding could not be determined "
            f"(best guess {encoding} at {confidence:.0%})."
        )

    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise CsvSchemaError(
            f"Unable to read file: unsupported encoding '{encoding}'."
        ) from exc

    logger.info("Detected encoding %s (%.0f%%)", encoding, confidence * 100)
    return encoding


class CsvImportReader:
    """Validates the header of an import file and streams its data rows.

    The header is read and checked on construction, so a file with the
    wrong columns is rejected before any row is looked at. ``rows()`` is
    a forward-only generator over the remaining records; it cannot be
    restarted.

    Args:
        stream: Binary stream of the uploaded file. The reader does not
            close it.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.encoding = detect_encoding(stream)
        # Bytes the codec rejects are kept as surrogates and reported per row.
        self._text = io.TextIOWrapper(
            stream, encoding=self.encoding, errors="surrogateescape", newline=""
        )
        self._reader = csv.reader(self._text, strict=True)
        self._row_number = 1
        self._consumed = False
        self.headers = self._read_header()

    def _read_header(self) -> list[str]:
        try:
            raw_headers = next(self._reader)
        except StopIteration as exc:
            raise CsvSchemaError("Invalid CSV file: the file is empty.") from exc
        except csv.Error as exc:
            raise CsvSchemaError(f"Unable to read CSV header: {exc}") from exc

        headers = [h.replace(UTF8_BOM, "").strip() for h in raw_headers]

        logger.debug(
            "CSV header validation: received=%s expected=%s",
            headers,
            list(EXPECTED_HEADERS),
        )
        if tuple(headers) != EXPECTED_HEADERS:
            raise CsvSchemaError(
                "Invalid CSV file structure. Expected columns: "
                + ", ".join(EXPECTED_HEADERS)
            )
        return headers

    def rows(self) -> Iterator[CsvRow | MalformedRow]:
        """Yield data rows in file order.

        Row numbers are 1-based with the header as row 1. Blank lines
        advance the row number but are not yielded. Lines that cannot be
        aligned to the header are yielded as MalformedRow, and so are
        lines holding bytes that are invalid in the file encoding.

        Yields:
            CsvRow for well-formed lines, MalformedRow otherwise.

        Raises:
            RuntimeError: If called a second time.
        """
        if self._consumed:
            raise RuntimeError("CSV rows can only be iterated once")
        self._consumed = True

        field_names = list(HEADER_FIELDS.values())
        while True:
            try:
                values = next(self._reader)
            except StopIteration:
                return
            except csv.Error as exc:
                self._row_number += 1
                yield MalformedRow(
                    row_number=self._row_number,
                    message=f"Malformed CSV line: {exc}",
                )
                continue

            self._row_number += 1
            if not values:
                continue
            if len(values) != len(field_names):
                yield MalformedRow(
                    row_number=self._row_number,
                    message=(
                        f"Expected {len(field_names)} columns "
                        f"but found {len(values)}."
                    ),
                )
                continue
            if any(_ESCAPED_BYTE.search(value) for value in values):
                yield MalformedRow(
                    row_number=self._row_number,
                    message=self._invalid_bytes_message(),
                )
                continue
            yield CsvRow(row_number=self._row_number, **dict(zip(field_names, values)))

    def _invalid_bytes_message(self) -> str:
        if codecs.lookup(self.encoding).name in ("utf-8", "utf-8-sig"):
            return "Row is not valid UTF-8."
        return f"Row is not valid {self.encoding} text."
