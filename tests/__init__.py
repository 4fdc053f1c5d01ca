"""
Tests for DinoBot

Tests are organized by functionality:
- test_dino_rules.py / test_feed_rules.py: message classification and feed filtering
- test_dino_responder.py / test_feed_relay.py: orchestration with fake collaborators
- test_*_client.py: GroupMe and Twitter clients against httpx.MockTransport
- api/: endpoint tests through FastAPI's TestClient
"""
