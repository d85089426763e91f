# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
tunnelca

Private CA, server certificate and client bundle provisioning for an FRP
reverse tunnel.
"""

__version__ = "0.1.0"
