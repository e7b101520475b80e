"""
Centralized SQL queries for the treatment protocol store.
"""


class ProtocolQueries:
    """SQL queries for treatment_protocols table."""

    GET_BY_ID = "SELECT protocol_data, is_active FROM treatment_protocols WHERE protocol_id = %s"

    GET_FOR_CANCER = """
        SELECT protocol_data, is_active
        FROM treatment_protocols
        WHERE %s = ANY(cancer_type_ids)
        {filters}
        ORDER BY evidence_level, name
    """

    ACTIVE_FILTER = "AND is_active = TRUE"

    LINE_FILTER = "AND treatment_line = %s"
