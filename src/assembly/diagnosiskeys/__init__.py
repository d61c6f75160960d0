"""Diagnosis keys distribution: records, export files, signing and the tree levels."""

from assembly.diagnosiskeys.assembler import Assembler, AssemblyResult
from assembly.diagnosiskeys.export import ExportFile, SignatureInfo, parse_export
from assembly.diagnosiskeys.model import DiagnosisKey, load_diagnosis_keys, parse_diagnosis_keys
from assembly.diagnosiskeys.signing import SigningDecorator
from assembly.diagnosiskeys.structure import DiagnosisKeysStructure

__all__ = [
    "Assembler",
    "AssemblyResult",
    "DiagnosisKey",
    "DiagnosisKeysStructure",
    "ExportFile",
    "SignatureInfo",
    "SigningDecorator",
    "load_diagnosis_keys",
    "parse_diagnosis_keys",
    "parse_export",
]
