from __future__ import annotations


EXTRACTION_PROMPT = """Analyze this utility bill image and extract the following in JSON:
- type (ELECTRICITY/GAS/WATER)
- suggestedName
- periods [{startDate, endDate, usageCost}] (YYYY-MM-DD). Sum blocks for same range.
- supplyCost (number)
- sewerageCost (number)
Use 0 if field missing.

Rules:
- If the bill lists several usage blocks for the SAME startDate/endDate range, add their costs into ONE period.
- Genuinely different date ranges stay as separate periods.
- Output a single JSON object with exactly these keys and nothing else."""

# Chat-style providers sometimes wrap JSON in prose unless told not to.
RAW_JSON_SUFFIX = " Respond with raw JSON only."
