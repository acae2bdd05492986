"""Pydantic models for report configuration."""
from __future__ import annotations
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# Shipped templates; override per run or via TESTSUMMARY_TEMPLATE / TESTSUMMARY_I18N_TEMPLATE.
DEFAULT_XSL_DIR = Path(__file__).resolve().parents[1] / "xsl"
DEFAULT_TEMPLATE_PATH = DEFAULT_XSL_DIR / "ReportTemplate.xsl"
DEFAULT_I18N_TEMPLATE_PATH = DEFAULT_XSL_DIR / "i18n.xsl"
DEFAULT_OUTPUT_DIRECTORY = Path("DefaultReport")
DEFAULT_OUTPUT_FILENAME = "index.htm"


class ReportLanguage(str, Enum):
    ENGLISH = "en"
    FRENCH = "fr"
    GERMAN = "de"
    ITALIAN = "it"
    SPANISH = "es"
    PORTUGUESE = "pt"

    @classmethod
    def _missing_(cls, value):
        # Accept member names as well as codes ("French", "FR")
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if wanted in (member.value, member.name.lower()):
                    return member
        return None

    @property
    def language_string(self) -> str:
        return self.value


class AssetSpec(BaseModel):
    template: Path = Field(..., description="Content template rendering this asset")
    filename: str = Field(..., description="File name inside the output directory")

    @field_validator("filename")
    @classmethod
    def _bare_filename(cls, v: str) -> str:
        if not v or Path(v).name != v:
            raise ValueError(f"asset filename must be a bare file name, got '{v}'")
        return v


class ReportConfig(BaseModel):
    input_files: List[Path] = Field(default_factory=list, description="Result files, merged in order")
    output_directory: Path = Field(DEFAULT_OUTPUT_DIRECTORY, description="Created when missing")
    output_filename: str = Field(DEFAULT_OUTPUT_FILENAME, description="Main report file name")
    language: ReportLanguage = Field(ReportLanguage.ENGLISH, description="Language passed to the i18n template")
    open_description: bool = Field(False, description="Expand test descriptions in the report")
    template_path: Path = Field(DEFAULT_TEMPLATE_PATH, description="Content XSLT")
    i18n_template_path: Path = Field(DEFAULT_I18N_TEMPLATE_PATH, description="Localization XSLT")
    assets: List[AssetSpec] = Field(default_factory=list, description="Extra outputs rendered from their own templates")
    intermediate_directory: Optional[Path] = Field(None, description="Keep content stage output here")
    metrics_file: Optional[Path] = Field(None, description="Prometheus textfile written after the run")

    @field_validator("output_directory", mode="before")
    @classmethod
    def _default_directory(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_OUTPUT_DIRECTORY
        return v

    @field_validator("output_filename", mode="before")
    @classmethod
    def _default_filename(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_OUTPUT_FILENAME
        return v

    @property
    def output_path(self) -> Path:
        return self.output_directory / self.output_filename
