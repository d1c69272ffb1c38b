# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
