"""
Contraindication detection and safety classification.
"""

from src.protocol_matching.safety.classifier import SafetyClassifier
from src.protocol_matching.safety.contraindication_detector import (
    ContraindicationDetector,
    detect_contraindications,
)

__all__ = ["ContraindicationDetector", "SafetyClassifier", "detect_contraindications"]
