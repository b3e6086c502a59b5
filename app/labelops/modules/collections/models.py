from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.labelops.models import Base


class Material(Base):
    __tablename__ = "material_collection"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    material_name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    material_mask_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"Material_Name": self.material_name, "Material_Mask_ID": self.material_mask_id}


class Adhesive(Base):
    __tablename__ = "adhesive_collection"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    adhesive_name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    adhesive_mask_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"Adhesive_Name": self.adhesive_name, "Adhesive_Mask_ID": self.adhesive_mask_id}


class HardwareName(Base):
    __tablename__ = "hardware_collection"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    hardware_name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    hardware_mask_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"Hardware_Name": self.hardware_name, "Hardware_Mask_ID": self.hardware_mask_id}
