# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

import sys

from .cli import main

sys.exit(main())
