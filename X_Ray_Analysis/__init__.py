"""
Deterministic X-ray analysis core: quality gate, region sampling, anatomy
classification, pathology scoring, mismatch gate and diagnosis rules.
"""

from .config import AnalysisConfig, RegionSpec, ScanLine
from .models import (AnatomyEstimate, BodyPart, DiagnosisRecord, FeatureVector, Finding,
                     MismatchOutcome, MismatchVerdict, QualityRejection, Severity)
from .pipeline import classify, classify_file, diagnose, diagnose_file
from .raster import DecodeFailure, RasterImage, decode_image
