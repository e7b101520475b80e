"""
Contraindication Detector

Cross-references patient comorbidities, allergies and current
medications against a protocol's declared contraindications, drug list
and drug interactions. This is the only source of absolute
contraindications, and therefore of the 'contraindicated' status.
"""

import logging
from typing import List

from src.protocol_matching.models.enums import ContraindicationType, InteractionSeverity
from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import ContraindicationResult
from src.protocol_matching.scoring.contraindication import match_declared_contraindications
from src.protocol_matching.text import terms_match

logger = logging.getLogger(__name__)


class ContraindicationDetector:
    """Detects absolute and relative contraindications."""

    def detect(self, patient: PatientProfile, protocol: TreatmentProtocol) -> List[ContraindicationResult]:
        """
        Detect contraindications for a patient/protocol pair.

        Args:
            patient: Patient profile
            protocol: Candidate protocol

        Returns:
            De-duplicated list of ContraindicationResult
        """
        results = (
            self._declared(patient, protocol)
            + self._drug_allergies(patient, protocol)
            + self._drug_interactions(patient, protocol)
        )

        unique = {}
        for result in results:
            unique.setdefault(result.description, result)

        if unique:
            absolute = sum(1 for r in unique.values() if r.type == ContraindicationType.ABSOLUTE)
            logger.debug(
                f"Protocol {protocol.id}: {len(unique)} contraindication(s), {absolute} absolute"
            )
        return list(unique.values())

    def _declared(self, patient, protocol) -> List[ContraindicationResult]:
        results = []
        for match in match_declared_contraindications(patient, protocol):
            declared = match.contraindication
            description = f"{declared.condition} ({match.patient_term})"
            if declared.rationale:
                description += f": {declared.rationale}"
            results.append(ContraindicationResult(
                type=declared.type,
                category=match.category,
                description=description,
                override_possible=declared.type == ContraindicationType.RELATIVE,
                source=declared.id or declared.condition,
                alternatives=declared.alternatives,
            ))
        return results

    def _drug_allergies(self, patient, protocol) -> List[ContraindicationResult]:
        results = []
        for allergy in patient.allergies:
            for drug in protocol.drugs:
                if not (terms_match(allergy.allergen, drug.name) or terms_match(allergy.allergen, drug.drug_class)):
                    continue
                severe = allergy.is_severe
                results.append(ContraindicationResult(
                    type=ContraindicationType.ABSOLUTE if severe else ContraindicationType.RELATIVE,
                    category="allergy",
                    description=f"Documented {allergy.severity or 'unspecified'} allergy to "
                                f"{allergy.allergen} ({drug.name})",
                    override_possible=not severe,
                    source=drug.name,
                    mitigation=None if severe else "Premedication and desensitization protocol",
                ))
        return results

    def _drug_interactions(self, patient, protocol) -> List[ContraindicationResult]:
        results = []
        for medication in patient.current_medications:
            for interaction in protocol.drug_interactions:
                if interaction.severity not in (InteractionSeverity.MAJOR, InteractionSeverity.CONTRAINDICATED):
                    continue
                if not (
                    terms_match(interaction.interacting_drug, medication.name)
                    or terms_match(interaction.interacting_drug, medication.drug_class)
                ):
                    continue
                absolute = interaction.severity == InteractionSeverity.CONTRAINDICATED
                results.append(ContraindicationResult(
                    type=ContraindicationType.ABSOLUTE if absolute else ContraindicationType.RELATIVE,
                    category="drug_interaction",
                    description=f"{interaction.severity.value.capitalize()} interaction: "
                                f"{interaction.drug} with {medication.name}",
                    override_possible=not absolute,
                    source=medication.name,
                    mitigation=interaction.management,
                ))
        return results


def detect_contraindications(patient: PatientProfile, protocol: TreatmentProtocol) -> List[ContraindicationResult]:
    return ContraindicationDetector().detect(patient, protocol)
