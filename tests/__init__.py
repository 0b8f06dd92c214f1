"""LanSweep Test Suite

Test modules:
    test_address_range  - range expansion, limits and subnet math
    test_port_parser    - port selections, lenient parsing, validation
    test_prober         - probe verdicts, deadlines, connection release
    test_discovery      - batched host discovery and cancellation
    test_scanner        - scan stage worker pool, progress, profiles
    test_session        - session lifecycle, requests and the channel
    test_dashboard      - Flask API through the test client
    test_cli            - target expressions, port lists, console reporter
    test_layering       - static import analysis (utils / core / dashboard)

Run all tests:
    pytest tests/ -v
"""
