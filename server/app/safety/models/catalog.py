"""Shared safety enumerations used by incident intake and OSHA classification."""

from __future__ import annotations

from enum import Enum


class InjuryInvolvement(str, Enum):
    YES = "yes"
    NO = "no"
    NEAR_MISS = "near_miss"


class RecordableChoice(str, Enum):
    YES = "yes"
    NO = "no"
    NEAR_MISS = "near_miss"
    INVESTIGATING = "investigating"


class IncidentStatus(str, Enum):
    PENDING_REVIEW = "pending_review"
    UNDER_REVIEW = "under_review"
    CLASSIFIED = "classified"
    CLOSED = "closed"


class IncidentClassification(str, Enum):
    INJURY = "injury"
    ILLNESS = "illness"
    NEAR_MISS = "near_miss"
    FIRST_AID_ONLY = "first_aid_only"
    PROPERTY_DAMAGE = "property_damage"


class InjuryType(str, Enum):
    """OSHA 300 injury/illness columns."""
    INJURY = "injury"
    SKIN_DISORDER = "skin_disorder"
    RESPIRATORY = "respiratory"
    POISONING = "poisoning"
    HEARING_LOSS = "hearing_loss"
    OTHER_ILLNESS = "other_illness"


class InjuryIcon(str, Enum):
    """Plain-language injury category picked by the reporter."""
    PHYSICAL = "physical"
    ILLNESS = "illness"
    EYE = "eye"
    HEARING = "hearing"
    HAZMAT = "hazmat"
    FIRST_AID = "first_aid"


class BodyPart(str, Enum):
    HEAD_NECK = "head_neck"
    BACK_SPINE = "back_spine"
    ARM_SHOULDER = "arm_shoulder"
    HAND_FINGERS = "hand_fingers"
    LEG_KNEE = "leg_knee"
    FOOT_ANKLE = "foot_ankle"
    EYE = "eye"
    MULTIPLE = "multiple"
    OTHER = "other"


class MedicalTreatment(str, Enum):
    NONE = "none"
    FIRST_AID = "first_aid"
    PHYSICIAN = "physician"
    EMERGENCY_ROOM = "emergency_room"
    HOSPITALIZED = "hospitalized"


class SourceType(str, Enum):
    PROJECT = "project"
    GROUNDS_INSPECTION = "grounds_inspection"
    WORK_ORDER = "work_order"
    STANDALONE = "standalone"


INJURY_INVOLVEMENT_LABELS: dict[InjuryInvolvement, str] = {
    InjuryInvolvement.YES: "Yes",
    InjuryInvolvement.NO: "No",
    InjuryInvolvement.NEAR_MISS: "Near miss",
}

RECORDABLE_CHOICE_LABELS: dict[RecordableChoice, str] = {
    RecordableChoice.YES: "Yes, OSHA recordable",
    RecordableChoice.NO: "No, first aid only",
    RecordableChoice.NEAR_MISS: "Near miss",
    RecordableChoice.INVESTIGATING: "Still investigating",
}

INJURY_TYPE_LABELS: dict[InjuryType, str] = {
    InjuryType.INJURY: "Injury",
    InjuryType.SKIN_DISORDER: "Skin Disorder",
    InjuryType.RESPIRATORY: "Respiratory Condition",
    InjuryType.POISONING: "Poisoning",
    InjuryType.HEARING_LOSS: "Hearing Loss",
    InjuryType.OTHER_ILLNESS: "All Other Illnesses",
}

INJURY_ICON_LABELS: dict[InjuryIcon, str] = {
    InjuryIcon.PHYSICAL: "Physical injury",
    InjuryIcon.ILLNESS: "Illness / respiratory",
    InjuryIcon.EYE: "Eye injury",
    InjuryIcon.HEARING: "Hearing",
    InjuryIcon.HAZMAT: "Hazmat / chemical",
    InjuryIcon.FIRST_AID: "Minor, first aid only",
}

BODY_PART_LABELS: dict[BodyPart, str] = {
    BodyPart.HEAD_NECK: "Head / neck",
    BodyPart.BACK_SPINE: "Back / spine",
    BodyPart.ARM_SHOULDER: "Arm / shoulder",
    BodyPart.HAND_FINGERS: "Hand / fingers",
    BodyPart.LEG_KNEE: "Leg / knee",
    BodyPart.FOOT_ANKLE: "Foot / ankle",
    BodyPart.EYE: "Eye",
    BodyPart.MULTIPLE: "Multiple",
    BodyPart.OTHER: "Other",
}

MEDICAL_TREATMENT_LABELS: dict[MedicalTreatment, str] = {
    MedicalTreatment.NONE: "None / First aid only",
    MedicalTreatment.FIRST_AID: "First aid on site",
    MedicalTreatment.PHYSICIAN: "Saw a doctor or clinic",
    MedicalTreatment.EMERGENCY_ROOM: "Emergency room visit",
    MedicalTreatment.HOSPITALIZED: "Hospitalized overnight",
}

SOURCE_TYPE_LABELS: dict[SourceType, str] = {
    SourceType.PROJECT: "Project",
    SourceType.GROUNDS_INSPECTION: "Grounds Inspection",
    SourceType.WORK_ORDER: "Work Order",
    SourceType.STANDALONE: "Safety Log",
}

# Seeds the classification injury-type radio group from the reporter's answer
INJURY_ICON_TO_TYPE: dict[InjuryIcon, InjuryType] = {
    InjuryIcon.PHYSICAL: InjuryType.INJURY,
    InjuryIcon.ILLNESS: InjuryType.RESPIRATORY,
    InjuryIcon.EYE: InjuryType.INJURY,
    InjuryIcon.HEARING: InjuryType.HEARING_LOSS,
    InjuryIcon.HAZMAT: InjuryType.POISONING,
    InjuryIcon.FIRST_AID: InjuryType.INJURY,
}

# Treatment at or below this level is first aid under OSHA rules
FIRST_AID_TREATMENTS: frozenset[MedicalTreatment] = frozenset({
    MedicalTreatment.NONE,
    MedicalTreatment.FIRST_AID,
})


def _options(labels: dict) -> list[dict[str, str]]:
    return [{"id": member.value, "label": label} for member, label in labels.items()]


def catalog() -> dict[str, list[dict[str, str]]]:
    """Option lists for every enumerated incident field, keyed by field name."""
    return {
        "injury_involvement": _options(INJURY_INVOLVEMENT_LABELS),
        "recordable_choice": _options(RECORDABLE_CHOICE_LABELS),
        "injury_type": _options(INJURY_TYPE_LABELS),
        "injury_icon": _options(INJURY_ICON_LABELS),
        "body_part": _options(BODY_PART_LABELS),
        "medical_treatment": _options(MEDICAL_TREATMENT_LABELS),
        "source_type": _options(SOURCE_TYPE_LABELS),
    }
