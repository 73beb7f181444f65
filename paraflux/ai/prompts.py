"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/prompts.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Centralized storage for AI instructions and prompt templates.
                Organized by processing stage to reduce logic file complexity.
------------------------------------------------------------------------------
"""

PARA_RULES = """
- project: direct working documents of an active project only (action items, checklists, deadlines). Always fill the `project` field.
- area: maintenance, monitoring, operations, ongoing areas of responsibility
- resource: analysis, guides, references, how-tos, learning material
- archive: finished work, outdated content, documents that are no longer active
Reference material related to a project is a resource, operational documents are an area.
Even if `para` is not project, fill `project` when the document belongs to an active project. Omit it otherwise.
"""

# --- STAGE 1: FAST BATCH CLASSIFICATION ---
PROMPT_STAGE_1_BATCH = """
You are an expert in organizing documents with the PARA method.

### ACTIVE PROJECTS
{project_context}

### EXISTING SUBFOLDERS
{subfolder_context}

### CLASSIFICATION RULES
{rules}

### FILES TO CLASSIFY
{file_list}

### RESPONSE FORMAT
Return ONLY a JSON array, no explanation and no markdown code block:
[
  {{
    "fileName": "file name",
    "para": "project" | "area" | "resource" | "archive",
    "tags": ["tag1", "tag2"],
    "confidence": 0.0-1.0,
    "summary": "one sentence",
    "project": "related project name (only if related, otherwise omit)",
    "targetFolder": "subfolder name (e.g. DevOps, Meetings). Never include the PARA prefix"
  }}
]
Return exactly one object per file. At most 5 tags.
confidence is your certainty about the category (0.0 = unknown, 1.0 = certain).
If an existing folder covers the same topic, reuse its name exactly.
"""

# --- STAGE 2: PRECISE SINGLE FILE CLASSIFICATION ---
PROMPT_STAGE_2_SINGLE = """
You are an expert in organizing documents with the PARA method. Analyze this document thoroughly.

### ACTIVE PROJECTS
{project_context}

### EXISTING SUBFOLDERS
{subfolder_context}

### CLASSIFICATION RULES
{rules}

### TARGET FILE
File name: {file_name}

### FULL CONTENT
{content}

### RESPONSE FORMAT
Return ONLY a JSON object, no explanation and no markdown code block:
{{
  "para": "project" | "area" | "resource" | "archive",
  "tags": ["tag1", "tag2"],
  "summary": "2-3 sentence summary of the document",
  "confidence": 0.0-1.0,
  "targetFolder": "subfolder name. Never include the PARA prefix",
  "project": "related project name (only if related, otherwise omit)"
}}
At most 5 tags. If an existing folder covers the same topic, reuse its name exactly.
"""

# --- COMPANION NOTES ---
PROMPT_SUMMARIZE_DOCUMENT = """
Summarize the following document in 3-5 sentences. Focus on purpose, key facts and decisions.
Return plain text only.

### DOCUMENT: {file_name}
{content}
"""

# --- SEMANTIC LINKS ---
LINK_RULES = """
1. Key question: "Does following this link lead to a new insight?"
2. Select only documents that are genuinely worth reading together, not just documents on the same topic.
3. context: a short phrase like "when comparing ...", "to understand ...", "before doing ..." (max. 8 words)
4. Always exclude unrelated candidates. Select at most {max_links} per note.
5. relation: pick exactly one type
   - "prerequisite": must be read first to understand the note
   - "project": same project or work stream
   - "reference": material to consult or compare
   - "related": similar topic
"""

PROMPT_LINK_FILTER_BATCH = """
For each note, select the candidates that are truly related.

{note_descriptions}
{guidance}
### RULES
{rules}

### RESPONSE (pure JSON, no code block)
[{{"noteIndex": 0, "links": [{{"index": 0, "context": "to compare approaches", "relation": "reference"}}]}}]
"""

PROMPT_LINK_FILTER_SINGLE = """
Select the candidates that are truly related to the following note and describe each connection.

Note: {note_name}
Tags: {note_tags}
Summary: {note_summary}

### CANDIDATES
{candidate_list}
{guidance}
### RULES
{rules}

### RESPONSE (pure JSON, no code block)
[{{"index": 0, "context": "to compare approaches", "relation": "reference"}}]
"""

# --- FOLDER RELATIONS ---
PROMPT_FOLDER_RELATIONS = """
Analyze how the following folder pairs of a PARA vault relate to each other.

{pair_descriptions}

### RULES
1. hint: a short phrase like "when applying ...", "when comparing ..." (max. 8 words)
2. relationType: one of "compare" | "apply" | "extend" | "related"
3. confidence: 0.0-1.0 (certainty that notes of both folders should be linked)
4. Unrelated pairs get confidence 0.0

### RESPONSE (pure JSON, no code block)
[{{"index": 0, "hint": "when comparing patterns", "relationType": "compare", "confidence": 0.85}}]
"""
