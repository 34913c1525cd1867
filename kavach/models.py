"""
MIT License
Copyright (c) 2025 DarekDGB

Core data models for Kavach.

These describe the decoded form of an identity record:
- gender and document type enums
- date of birth
- Aadhaar and PAN record variants

Records are transient. Only their packed, signed byte form travels.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Union

from .errors import InvalidFormat, KavachError, ValueOutOfRange

MIN_YEAR = 1900
MAX_YEAR = MIN_YEAR + (1 << 9) - 1  # 2411


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    UNKNOWN = "Unknown"


class DocumentType(str, Enum):
    """Document type, with its 2-bit tag as the value."""
    AADHAAR = "00"
    PAN = "01"


@dataclass(frozen=True)
class DateOfBirth:
    day: int
    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.day <= 31:
            raise ValueOutOfRange(f"day must be 1-31, got {self.day}")
        if not 1 <= self.month <= 12:
            raise ValueOutOfRange(f"month must be 1-12, got {self.month}")
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            raise ValueOutOfRange(f"year must be {MIN_YEAR}-{MAX_YEAR}, got {self.year}")

    def to_dict(self) -> Dict[str, int]:
        return {"day": self.day, "month": self.month, "year": self.year}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "DateOfBirth":
        try:
            return cls(day=int(d["day"]), month=int(d["month"]), year=int(d["year"]))
        except (KeyError, TypeError) as exc:
            raise InvalidFormat("dob must contain integer day, month and year") from exc


@dataclass(frozen=True)
class AadhaarRecord:
    """
    Aadhaar variant. `document_number` is the 12-digit Aadhaar number as an int.
    """
    version: int
    gender: Gender
    document_number: int
    dob: DateOfBirth
    name: str

    document_type = DocumentType.AADHAAR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "gender": self.gender.value,
            "aadhaar": self.document_number,
            "dob": self.dob.to_dict(),
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AadhaarRecord":
        try:
            return cls(
                version=int(d["version"]),
                gender=Gender(d["gender"]),
                document_number=int(d["aadhaar"]),
                dob=DateOfBirth.from_dict(d["dob"]),
                name=str(d["name"]),
            )
        except KavachError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidFormat("Invalid Aadhaar record fields") from exc


@dataclass(frozen=True)
class PanRecord:
    version: int
    dob: DateOfBirth
    pan: str
    name: str
    fathers_name: str

    document_type = DocumentType.PAN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "dob": self.dob.to_dict(),
            "pan": self.pan,
            "name": self.name,
            "fathersName": self.fathers_name,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "PanRecord":
        try:
            return cls(
                version=int(d["version"]),
                dob=DateOfBirth.from_dict(d["dob"]),
                pan=str(d["pan"]),
                name=str(d["name"]),
                fathers_name=str(d["fathersName"]),
            )
        except KavachError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidFormat("Invalid PAN record fields") from exc


IdentityRecord = Union[AadhaarRecord, PanRecord]
