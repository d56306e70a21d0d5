# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Model-assisted refactor prompt generation for JavaScript and TypeScript files."""
