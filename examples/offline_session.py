"""Offline session -- drive the keep-alive bot against the in-memory client.

Demonstrates:
- Building a supervisor around MockClient with a seeded engine
- Simulating server events (chat commands, death, disconnect)
- Advancing virtual time with engine.advance instead of sleeping

Run: python -m examples.offline_session
"""

import logging

from tick_keepalive import Engine, KeepAliveConfig, MockClient, SessionSupervisor


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    print("=== Offline session ===\n")

    engine = Engine(tps=20, seed=7)
    config = KeepAliveConfig(min_action_delay_ms=2000, max_action_delay_ms=4000, chat_probability=0.5)
    clients: list[MockClient] = []

    def factory(cfg: KeepAliveConfig, emit) -> MockClient:
        client = MockClient(cfg, emit)
        client.move_player("alex", (6.0, 64.0, 8.0))
        clients.append(client)
        return client

    supervisor = SessionSupervisor(engine, config, factory)
    supervisor.start()
    engine.advance(0)
    print(f"state after spawn: {supervisor.state.value}")

    # A minute of idle actions.
    for _ in range(60):
        engine.advance(1000)
    client = clients[-1]
    print(f"controls toggled: {len(client.control_history)}  looks: {len(client.looks)}")

    # Another player asks to be followed, then walks out of range.
    client.say("alex", "(follow me)")
    engine.advance(0)
    print(f"following: {supervisor.follow.target}")
    client.move_player("alex", (40.0, 64.0, 0.0))
    engine.advance(2000)
    print(f"following after walk-away: {supervisor.follow.target} ({supervisor.follow.last_stop_reason})")

    # The server drops us; the supervisor reconnects after the delay.
    client.end("socketClosed")
    engine.advance(0)
    print(f"state after drop: {supervisor.state.value}")
    engine.advance(config.reconnect_delay_ms)
    print(f"state after reconnect: {supervisor.state.value}  sessions: {len(clients)}")

    supervisor.shutdown()
    print(f"\nchat sent by first session: {clients[0].chat_log}")


if __name__ == "__main__":
    main()
