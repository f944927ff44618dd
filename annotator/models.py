"""
Record and Candidate data models.

A record is one annotatable unit: an input string, the candidate answers
proposed for it, and optionally the golden answer chosen by an annotator.

Records are created once at load time. Their position in the loaded
sequence is their stable index for the life of the process. The only
field mutated after load is `golden`, and only through the ledger.

All models use Pydantic for validation.
Unknown keys in a data file are preserved and written back on save.
"""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# Golden value meaning "none of the candidates is correct"
NO_CORRECT_CANDIDATE = "?"


class Candidate(BaseModel):
    """
    A proposed answer for a record.

    `distance` is the candidate's distance/similarity score relative to the
    record's input. Lower is not necessarily better; the meaning depends on
    whatever produced the data file.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    names: List[str] = Field(min_length=1)
    distance: float = 0.0


class Record(BaseModel):
    """
    A single annotation record.

    golden:
        ""   not yet answered
        "?"  answered, no correct candidate
        else the id of the candidate chosen as the true answer
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    input: str
    candidates: List[Candidate] = Field(default_factory=list)
    golden: str = ""
    type: Optional[str] = None
    method: Optional[str] = None
    restricted: bool = Field(
        default=False,
        validation_alias=AliasChoices("controlaccess", "controlAccess", "restricted"),
        serialization_alias="controlaccess",
    )

    @field_validator("candidates", mode="before")
    @classmethod
    def _null_candidates(cls, value):
        # Files written by older tools store an empty list as null
        return [] if value is None else value

    @field_validator("golden", mode="before")
    @classmethod
    def _null_golden(cls, value):
        return "" if value is None else value

    @property
    def answered(self) -> bool:
        """True once a golden answer has been stored."""
        return self.golden != ""

    def candidate_ids(self) -> List[str]:
        return [c.id for c in self.candidates]
