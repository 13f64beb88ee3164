# app/models/enums/production_status.py
import enum


class WorkOrderStatus(str, enum.Enum):
    planned = "planned"
    in_progress = "in_progress"
    on_hold = "on_hold"
    completed = "completed"
    quality_approved = "quality_approved"
    cancelled = "cancelled"


class WorkOrderStepStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    on_hold = "on_hold"


class JourneyStatus(str, enum.Enum):
    planned = "planned"
    active = "active"
    paused = "paused"
    completed = "completed"
    cancelled = "cancelled"


class JourneyStepStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


class Priority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
