"""Unit tests for the closeable-client-not-closed rule."""

from pathlib import Path

from sdklint.context import FileContext
from sdklint.parser import create_parser, parse_bytes
from sdklint.ruleconfig import TypeStub
from sdklint.rules.closeable_clients import CloseableClientRule
from sdklint.symbols import Project

HEADER = b"""
package com.example;

import com.azure.messaging.servicebus.ServiceBusSenderClient;
import com.azure.messaging.servicebus.ServiceBusClientBuilder;
import java.io.InputStream;
"""


def _run_rule(body: bytes, path: Path | None = None) -> list:
    """Parse HEADER + body, build context, run CloseableClientRule, return findings."""
    if path is None:
        path = Path("Sender.java")
    source = HEADER + body
    tree = parse_bytes(source, parser=create_parser())
    ctx = FileContext(path=path, source=source, tree=tree)
    rule = CloseableClientRule()
    return rule.run(ctx, None)


def test_client_never_closed_is_reported_at_its_name():
    findings = _run_rule(b"""
public class Sender {
    public void send() {
        ServiceBusSenderClient sender = new ServiceBusClientBuilder()
            .connectionString("cs")
            .sender()
            .queueName("q")
            .buildClient();
        sender.sendMessage(null);
    }
}
""")
    assert len(findings) == 1
    finding = findings[0]
    assert finding.rule_id == "closeable-client-not-closed"
    assert finding.location.snippet == "sender"
    assert "'sender'" in finding.message
    assert "com.azure.messaging.servicebus.ServiceBusSenderClient" in finding.message
    assert finding.fix is not None


def test_try_with_resources_is_compliant():
    findings = _run_rule(b"""
public class Sender {
    public void send(ServiceBusClientBuilder builder) {
        try (ServiceBusSenderClient sender = create()) {
            sender.sendMessage(null);
        }
    }
}
""")
    assert findings == []


def test_only_local_declarations_are_routed():
    rule = CloseableClientRule()
    assert rule.node_types == frozenset({"local_variable_declaration"})
    findings = _run_rule(b"""
public class Sender {
    public void send() {
        try (ServiceBusSenderClient first = create(); ServiceBusSenderClient second = create()) {
            ServiceBusSenderClient inner = create();
            inner.sendMessage(null);
        }
    }
}
""")
    assert [f.location.snippet for f in findings] == ["inner"]


def test_closed_in_finally_is_compliant():
    findings = _run_rule(b"""
public class Sender {
    public void send() {
        ServiceBusSenderClient sender = create();
        try {
            sender.sendMessage(null);
        } finally {
            sender.close();
        }
    }
}
""")
    assert findings == []


def test_close_anywhere_in_file_is_accepted():
    findings = _run_rule(b"""
public class Sender {
    public void send(boolean done) {
        ServiceBusSenderClient sender = create();
        sender.sendMessage(null);
        if (done) {
            sender.close();
        }
    }
}
""")
    assert findings == []


def test_only_the_unclosed_client_is_reported():
    findings = _run_rule(b"""
public class Sender {
    public void send() {
        ServiceBusSenderClient first = create();
        ServiceBusSenderClient second = create();
        try {
            first.sendMessage(null);
        } finally {
            first.close();
        }
    }
}
""")
    assert len(findings) == 1
    assert findings[0].location.snippet == "second"


def test_close_on_another_variable_with_same_name_does_not_count():
    findings = _run_rule(b"""
public class Sender {
    public void send() {
        ServiceBusSenderClient sender = create();
        sender.sendMessage(null);
    }

    public void other(ServiceBusSenderClient sender) {
        sender.close();
    }
}
""")
    assert len(findings) == 1


def test_types_outside_namespace_are_ignored():
    findings = _run_rule(b"""
public class Reader {
    public void read() {
        InputStream in = open();
        in.read();
    }
}
""")
    assert findings == []


def test_unresolved_type_is_ignored():
    findings = _run_rule(b"""
public class Sender {
    public void send() {
        MysteryClient client = create();
    }
}
""")
    assert findings == []


def test_dispose_counts_as_release():
    source = b"""
package com.example;

import com.azure.example.Watcher;

public class Watching {
    public void watch() {
        Watcher watcher = start();
        watcher.dispose();
    }

    public void leak() {
        Watcher leaked = start();
    }
}
"""
    tree = parse_bytes(source, parser=create_parser())
    project = Project(type_stubs={"com.azure.example.Watcher": TypeStub(interfaces=("reactor.core.Disposable",))})
    ctx = FileContext(path=Path("Watching.java"), source=source, tree=tree, project=project)
    findings = CloseableClientRule().run(ctx, None)
    assert [f.location.snippet for f in findings] == ["leaked"]
