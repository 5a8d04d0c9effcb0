"""Designated Examiner (forensic) report template.

Produces a legal-criteria brief for involuntary commitment hearings instead of
a clinical note. Sections carry their own instructions; the report has no
SmartLinks or SmartLists, only wildcards for transcript-derived prose.
"""

from __future__ import annotations

from smarttools.templates.models import NoteTemplate, TemplateSection

FORENSIC_WORD_BAND: tuple[int, int] = (800, 1000)
CRITERIA_COUNT = 5

CRITERION_TITLES: tuple[str, ...] = (
    "Mental Illness",
    "Danger or Grave Disability",
    "Lacks Rational Decision-Making",
    "No Less Restrictive Alternative",
    "Adequate Care Available",
)

_CRITERIA_FORMAT = "\n\n".join(
    f"**Criterion {index}: {title}**\n[YES or NO] — [Evidence]"
    for index, title in enumerate(CRITERION_TITLES, start=1)
)

FORENSIC_SECTIONS: tuple[TemplateSection, ...] = (
    TemplateSection(
        order=1,
        name="Patient Identification",
        content="Name: ***\nAge: ***\nGender: ***\nHospital: ***\nDiagnosis(es): ***",
        instructions=(
            "Extract demographics and current psychiatric diagnoses from the transcript. "
            'Write "Not stated in interview." for anything not mentioned.'
        ),
    ),
    TemplateSection(
        order=2,
        name="Initial Presentation",
        content="***",
        instructions=(
            "Describe how the patient presented at admission: observable behavior, stated "
            "reason for admission, initial mental status. Two or three sentences."
        ),
    ),
    TemplateSection(
        order=3,
        name="Relevant Workup",
        content="Workup (Labs/imaging/etc.): ***",
        instructions=(
            "List labs, imaging and other diagnostics mentioned in the interview. "
            'If none were discussed, write "None discussed in interview."'
        ),
    ),
    TemplateSection(
        order=4,
        name="Relevant History",
        content="***",
        instructions=(
            "Only history relevant to commitment: prior hospitalizations, suicide attempts "
            "or self-harm, violence, legal issues, relevant substance use. "
            "At most six sentences."
        ),
    ),
    TemplateSection(
        order=5,
        name="Hospital Course",
        content="***",
        instructions=(
            "Summarize behavior and treatment response during this admission: incidents, "
            "medication adherence, engagement, safety precautions. Three to five sentences."
        ),
    ),
    TemplateSection(
        order=6,
        name="Current Medications",
        content="Medications: ***",
        instructions=(
            "List current psychiatric medications with doses when stated. "
            'If none were discussed, write "None discussed in interview."'
        ),
    ),
    TemplateSection(
        order=7,
        name="Interview Assessment",
        content="***",
        instructions=(
            "Summarize the examiner interview under **Date of Interview:**, "
            "**Staff Report:** and **Per Patient:**. Cite the patient's own words. "
            "Five to seven sentences."
        ),
    ),
    TemplateSection(
        order=8,
        name="Commitment Criteria Analysis",
        content=_CRITERIA_FORMAT,
        instructions=(
            "For each criterion give an unambiguous YES or NO on the line after its "
            "heading, followed by two or three sentences of evidence from the interview. "
            'If a criterion cannot be assessed, say "Unable to fully assess from interview".'
        ),
    ),
    TemplateSection(
        order=9,
        name="Commitment Recommendation",
        content="***",
        instructions=(
            "State in two or three sentences whether all criteria are met and the "
            "recommended commitment length or alternative disposition."
        ),
    ),
    TemplateSection(
        order=10,
        name="Additional Considerations",
        content="***",
        instructions=(
            "Three to five one-sentence bullets: living situation, employment, follow-up "
            "plans, primary safety concern, least restrictive alternative analysis."
        ),
    ),
)

FORENSIC_TEMPLATE = NoteTemplate(
    name="Designated Examiner Report",
    visit_type="Designated Examiner",
    sections=list(FORENSIC_SECTIONS),
)
