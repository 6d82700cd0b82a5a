"""Connection building: selectors, profiles, config assembly and initiation."""
