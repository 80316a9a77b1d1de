# SPDX-License-Identifier: Apache-2.0
"""
chroma_sdk tests

Client behaviour is exercised against an in-process fake server mounted on
httpx.MockTransport (see conftest.py); no network access is required.
"""
