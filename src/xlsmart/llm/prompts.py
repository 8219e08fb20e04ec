from __future__ import annotations

STANDARDIZATION_SYSTEM_PROMPT = (
    "You are an expert HR analyst for a telecommunications company. "
    "Create standardized role definitions. Respond only with valid JSON."
)

STANDARDIZATION_PROMPT = """
Analyze this role data and create standardized roles.

{file_sections}

Create {min_roles}-{max_roles} standardized telecommunications roles that cover the roles above,
and map every distinct original role title to exactly one of them.
Return strict JSON with keys:
- standardRoles: array of objects with keys:
  - role_title: string
  - department: string
  - job_family: string
  - role_level: string (for example "IC3-IC5")
  - role_category: string
  - standard_description: string
  - core_responsibilities: string[]
  - required_skills: string[]
  - experience_range_min: integer (years)
  - experience_range_max: integer (years)
- mappings: array of objects with keys:
  - original_role_title: string
  - original_department: string
  - original_level: string
  - standardized_role_title: string (must equal one of standardRoles[].role_title)
  - mapping_confidence: number (0..100)
""".strip()

FILE_SECTION_TEMPLATE = """
File: {file_name}
Headers: {headers}
Sample data: {sample_rows}
""".strip()
