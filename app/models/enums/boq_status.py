# app/models/enums/boq_status.py
import enum


class BoqCategory(str, enum.Enum):
    material = "material"
    labor = "labor"
    equipment = "equipment"
    subcontract = "subcontract"
    other = "other"


class EtoStatus(str, enum.Enum):
    boq_submitted = "boq_submitted"
    engineering_design = "engineering_design"
    bom_generation = "bom_generation"
    manufacturing_ready = "manufacturing_ready"
