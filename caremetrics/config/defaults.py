DEFAULT_CONFIG = {
    # -----------------------------
    # COERCION (raw text -> typed)
    # -----------------------------
    "coercion": {
        # Closed, case-sensitive truthy set. Anything else is False.
        "truthy_values": ["1", "Y", "Yes", "TRUE"],
        "datetime_formats": [
            "%Y-%m-%d %H:%M:%S.%f",
            "%Y-%m-%d %H:%M:%S",
            "%Y-%m-%dT%H:%M:%S",
            "%Y-%m-%d %H:%M",
            "%Y-%m-%d",
            "%Y%m%d",
            "%m/%d/%Y %H:%M:%S",
            "%m/%d/%Y %H:%M",
            "%m/%d/%Y",
        ],
        # dateutil fallback is OFF by default: it accepts fragments like "12"
        "datetime_fallback_parser": False,
    },

    # -----------------------------
    # REPORTS
    # -----------------------------
    "reports": {
        # decimal(10,4)
        "rate_precision": 4,
        "min_sample": {
            "avg_los_by_hospital_department": 30,
            "readmission_by_diagnosis": 50,
            "lowest_compliance_measures": 50,
            "surgical_cost_by_specialty": 30,
            "profitability_by_specialty": 30,
            "highest_cost_resources": 20,
        },
        "top_n": {
            "readmission_by_diagnosis": 30,
        },
    },

    # -----------------------------
    # INTEGRITY
    # -----------------------------
    "integrity": {
        # a null FK on a required reference counts as an orphan
        "null_fk_is_orphan": True,
    },

    # -----------------------------
    # METADATA (OPTIONAL)
    # -----------------------------
    "metadata": {
        "framework": "caremetrics",
    },
}
