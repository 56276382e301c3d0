from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class VerilogSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    include_paths: List[str] = []
    defines: List[str] = []


class OptionSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    linter: bool = True


class ServerConfiguration(BaseModel):
    """Contents of ``.svls.toml``; every section falls back to its defaults."""

    model_config = ConfigDict(frozen=True)

    verilog: VerilogSection = Field(default_factory=VerilogSection)
    option: OptionSection = Field(default_factory=OptionSection)


class RuleSettings(BaseModel):
    """Contents of ``.svlint.toml``, read by the rule engine."""

    model_config = ConfigDict(frozen=True)

    option: Dict[str, Any] = {}
    rules: Dict[str, bool] = {}
