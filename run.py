import sys
import json
import os
from meshsim.network.topology import TopologyGraph
from meshsim.network.node import MeshNode
from meshsim.network.delegate import RecordingDelegate
from meshsim.crypto.keys import KeyPair
from meshsim.utils.logger import DeterministicLogger


def load_config(config_file):
    """Load configuration from file"""
    with open(config_file, 'r', encoding='utf-8') as f:
        return json.load(f)


def build_mesh(config):
    """Create the topology, its nodes and links from a scenario config"""
    topology = TopologyGraph(config.get("mesh", {}))
    nodes = {}
    for spec in config.get("nodes", []):
        key_pair = KeyPair.from_seed(spec["key_seed"]) if "key_seed" in spec else None
        node = MeshNode(
            topology,
            peer_id=spec["peer_id"],
            nickname=spec.get("nickname"),
            key_pair=key_pair,
            sign_packets=spec.get("sign_packets", False)
        )
        if "auto_flood" in spec:
            node.auto_flood = spec["auto_flood"]
        node.delegate = RecordingDelegate()
        nodes[node.peer_id] = node

    for a, b in config.get("links", []):
        if a in nodes and b in nodes:
            nodes[a].simulate_connection(nodes[b])
        else:
            topology.connect(a, b)
    return topology, nodes


def run_scenario(config, det_logger=None):
    """Run one scenario; returns (success, report)"""
    topology, nodes = build_mesh(config)

    for peer_id, node in nodes.items():
        if det_logger:
            det_logger.log_event("node_created", {"peer_id": peer_id, "fingerprint": node.fingerprint()})
    for a, b in topology.edges():
        if det_logger:
            det_logger.log_event("link_up", {"a": a, "b": b})

    for send in config.get("sends", []):
        sender = nodes.get(send["from"])
        if sender is None:
            print(f"  [SKIP] unknown sender {send['from']}")
            continue
        message = sender.send(
            send["content"],
            recipient_id=send.get("to"),
            message_id=send.get("id"),
            timestamp=send.get("timestamp", 0)
        )
        if det_logger and message:
            det_logger.log_event("send", {
                "from": send["from"],
                "to": send.get("to"),
                "msg_id": message.msg_id
            })

    echoes = topology.drain_deferred()

    # Per-node delivery counts, keyed by message id
    report = {"echoes": echoes, "deliveries": {}, "events": {}, "failures": []}
    for peer_id, node in nodes.items():
        counts = {}
        for message in node.delegate.messages:
            counts[message.msg_id] = counts.get(message.msg_id, 0) + 1
        report["deliveries"][peer_id] = counts
        if det_logger:
            det_logger.log_event("deliveries", {"peer_id": peer_id, "counts": counts})

    for event in topology.get_events():
        report["events"][event["event"]] = report["events"].get(event["event"], 0) + 1

    for expectation in config.get("expect", []):
        actual = report["deliveries"].get(expectation["node"], {}).get(expectation["receives"], 0)
        if actual != expectation.get("count", 1):
            report["failures"].append({
                "node": expectation["node"],
                "msg_id": expectation["receives"],
                "expected": expectation.get("count", 1),
                "actual": actual
            })

    return not report["failures"], report


def main():
    """Main function"""
    if len(sys.argv) < 2:
        config_file = "config/line_scenario.json"
        print(f"Using default config: {config_file}")
    else:
        config_file = sys.argv[1]

    try:
        config = load_config(config_file)
    except (OSError, ValueError) as e:
        print(f"\nERROR: could not load {config_file}: {e}")
        sys.exit(1)

    log_file = config.get("log_file", "logs/scenario.json")
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    det_logger = DeterministicLogger(log_file)

    print("=" * 60)
    print("MESH SIMULATOR - Starting...")
    print("=" * 60)

    success, report = run_scenario(config, det_logger)

    print(f"\nLocal echoes delivered: {report['echoes']}")
    print("\nDeliveries:")
    for peer_id, counts in sorted(report["deliveries"].items()):
        summary = ", ".join(f"{msg_id} x{n}" for msg_id, n in sorted(counts.items())) or "-"
        print(f"  {peer_id}: {summary}")

    print("\nNetwork Statistics:")
    for event_type, count in sorted(report["events"].items()):
        print(f"  {event_type}: {count}")

    for failure in report["failures"]:
        print(f"  [FAIL] {failure['node']} saw {failure['msg_id']} "
              f"{failure['actual']} time(s), expected {failure['expected']}")

    det_logger.save()
    print(f"\nLogs saved to: {log_file}")
    print(f"  Log hash: {det_logger.get_hash()[:16]}...")

    print("\n" + "=" * 60)
    print("SCENARIO PASSED" if success else "SCENARIO FAILED")
    print("=" * 60)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
