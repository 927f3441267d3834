from dataclasses import dataclass


@dataclass(slots=True)
class Settings:
    sound_enabled: bool = True
