# lxp_bridge

Building blocks for bridging LuxPower hybrid inverters to MQTT, Home Assistant,
InfluxDB and SQL databases.

## Modules

- `lxp_bridge.config` – reads a YAML configuration into dataclasses
  (`Config`, `Inverter`, `Mqtt`, `HomeAssistant`, `Influx`, `Database`,
  `Scheduler`, `Crontab`) with `parse_config(data)` and `load_config(path)`.
  Invalid or missing settings raise `ConfigError`. `ConfigWrapper` wraps a
  `Config` and offers `enabled_inverters()`, `inverter_with_host(host)`,
  `enabled_inverter_with_datalog(datalog)`, `have_enabled_database()` and
  `enabled_databases()`.
- `lxp_bridge.channels` – asyncio broadcast channels. `Broadcast(capacity)`
  delivers every `send(item)` to every `Receiver` obtained from `subscribe()`;
  a slow receiver drops its oldest messages. Sending with no receivers, or on a
  closed channel, raises `ChannelClosed`, as does `Receiver.recv()` once a
  closed channel is drained. `Channels` bundles the six channels the components
  share (`from_inverter`, `to_inverter`, `from_mqtt`, `to_mqtt`, `to_influx`,
  `to_database`), each with room for 2048 messages.
- `lxp_bridge.command` – `Command(kind, inverter, number, value)` with a
  `CommandKind`; arguments are checked on construction, and
  `to_result_topic()` gives the topic the result is reported on, e.g.
  `result/<datalog>/set/hold/66`.
- `lxp_bridge.home_assistant` – `HomeAssistantConfig(inverter, mqtt_config)`
  builds retained discovery `Message`s: `sensors()`, `switch(name, label)`,
  `number_percent(register_name, register_number, label)` and
  `time_range(name, label)`.
- `lxp_bridge.influx` – `build_line(data)` renders a set of input values as
  InfluxDB line protocol (`time` as the timestamp, `datalog` as a tag).
  `Influx(config, channels)` receives `InputData` from `channels.to_influx` and
  POSTs each line to `<url>/write?db=<database>`, retrying every 10 seconds on
  failure, until it receives `Shutdown` (sent by `stop()`).
- `lxp_bridge.database` – `database_type(url)` recognises `sqlite:`, `mysql:`
  and `postgres:` URLs; `insert_query(kind)` and `row_values(data)` give the
  INSERT statement and its values. `Database(config, channels)` receives
  `ReadInputAll` from `channels.to_database` and inserts each into the `inputs`
  table through SQLAlchemy, retrying every 10 seconds on failure, until it
  receives `Shutdown`.
- `lxp_bridge.time_registers` – `Action(kind, num)` maps a timeslot
  (`ActionKind.AC_CHARGE`, `AC_FIRST`, `CHARGE_PRIORITY`, `FORCED_DISCHARGE`;
  slots 1–3) to its holding register and reply topic; `reply_payload(values)`
  formats four bytes as `{"start":"HH:MM","end":"HH:MM"}`.
- `lxp_bridge.timesync` – `inverter_datetime(values)`, `local_now()`,
  `needs_sync(inverter_time, now)` (more than 120 seconds apart) and
  `set_time_values(now)`.

## Installation

    pip install .

## Configuration

    inverters:
      - host: 192.168.0.30
        port: 8000
        serial: "0000000000"
        datalog: "AAAAAAAAAA"
        publish_holdings_on_connect: true
    mqtt:
      host: localhost
      namespace: lxp
    influx:
      enabled: false
      url: http://localhost:8086
      database: lxp
    databases:
      - url: sqlite://lxp.db
    loglevel: info

Load it with:

    from lxp_bridge.config import ConfigWrapper

    config = ConfigWrapper.from_file("config.yaml")
    for inverter in config.enabled_inverters():
        print(inverter.datalog)

Unset values take their defaults: MQTT port 1883, namespace `lxp`, Home
Assistant discovery prefix `homeassistant`, log level `debug`, no databases,
no scheduler, and every `enabled` flag true.

## What this package does not do

- It does not talk to inverters: there is no network connection to an
  inverter and no encoding or decoding of its packets.
- It has no MQTT client; discovery and result messages are only built, not
  published, and incoming commands are not parsed from topics.
- It has no command-line program or long-running service that wires the
  components together or runs the scheduler.
- `Database` does not create or migrate the `inputs` table; it must exist.
  MySQL and Postgres need a database driver for SQLAlchemy installed
  separately.

## Tests

    pip install .[test]
    pytest