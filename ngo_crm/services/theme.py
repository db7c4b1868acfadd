"""Theme preference"""

from ngo_crm.models import ThemeMode


class ThemeStore:
    def __init__(self, mode: ThemeMode = ThemeMode.SYSTEM):
        self.mode = mode

    def set_mode(self, mode: ThemeMode) -> ThemeMode:
        self.mode = ThemeMode(mode)
        return self.mode

    def toggle_mode(self) -> ThemeMode:
        """Dark goes to light; light and system go to dark."""
        self.mode = ThemeMode.LIGHT if self.mode == ThemeMode.DARK else ThemeMode.DARK
        return self.mode

    def is_dark(self, system_prefers_dark: bool = False) -> bool:
        if self.mode == ThemeMode.SYSTEM:
            return system_prefers_dark
        return self.mode == ThemeMode.DARK
