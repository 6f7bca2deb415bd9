# nfsping

Check whether NFS servers are up and how quickly they answer. `nfsping` sends
ONC RPC NULL calls to NFS and its companion protocols (mount, portmap, NLM,
KLM, NSM status, NFS ACL and rquota) and prints the latencies in one of
several output formats. `nfsup` is a Nagios-style check built on the same
RPC client.

No libraries beyond the Python standard library are needed.

## Installation

```
pip install .
```

Running the tests needs the `test` extra:

```
pip install .[test]
pytest
```

## nfsping

```
nfsping [options] targets...
```

Targets are IPv4 addresses or host names. By default it loops forever and
pings NFS version 3 over UDP on port 2049, ten times a second, reconnecting
for every ping. Press Ctrl-C to stop and print a summary.

| Option | Meaning |
| ------ | ------- |
| `-c n` | send `n` pings to each target |
| `-C n` | same as `-c`, with fping-compatible output (per-ping results listed on stderr at the end) |
| `-l` | loop forever (the default) |
| `-T` | use TCP instead of UDP |
| `-V n` | NFS version (2, 3 or 4, default 3) |
| `-n`, `-N`, `-L`, `-K`, `-s`, `-a`, `-u` | check mount, portmap, NLM, KLM, NSM status, NFS ACL or rquota instead of NFS |
| `-M` | find the port through the portmapper |
| `-P n` | connect to port `n` |
| `-G`, `-E`, `-D` | Graphite, StatsD or Unix-timestamped output |
| `-g prefix` | metric name prefix for Graphite and StatsD (default `nfsping`) |
| `-q`, `-Q n` | quiet; with `-Q`, print a summary every `n` seconds |
| `-R` | keep the connection open instead of reconnecting every ping |
| `-H n` | pings per second (default 10) |
| `-i n` | wait between targets in ms (default 1) |
| `-t n` | timeout in ms (default 1000) |
| `-A`, `-d`, `-m` | show IP addresses, reverse-resolve names, use every address a name resolves to (implies `-A`) |
| `-S addr` | source address for outgoing packets |
| `-v` | verbose debug output on stderr |
| `-h` | show every option |

Mount, NLM, KLM, NSM and rquota are looked up through the portmapper unless a
port is given; NFS and NFS ACL default to port 2049 and portmap to 111.

Examples:

```
nfsping -c 5 filer1 filer2
nfsping -C 10 -T filer1
nfsping -G -g storage.nfs -n filer1
```

Graphite and StatsD metric names are built as
`<prefix>.<reversed host name>.<protocol>`, for example
`nfsping.com.example.filer1.nfsv3.usec`. IP addresses are not reversed.

The exit status is 0 when every ping got a reply and 1 when any was lost.
Usage errors exit with status 3 and name resolution failures with status 2.

## nfsup

A Nagios-style check that a server's portmapper, mount service (an export
list request) and NFSv3 service all answer:

```
nfsup 192.0.2.10
```

It prints a line such as `PMAP OK MOUNT OK NFS OK` and exits with the matching
Nagios state: 0 (OK) or 2 (CRITICAL). With no argument it prints its usage,
and with an argument that is not an IPv4 address it reports the error; both
exit with 3 (UNKNOWN).

## Using it from Python

The pieces are usable on their own:

- `nfsping.rpc.create_rpc_client(address, port, program, version, timeout, transport, source)`
  opens an `RpcClient` over UDP or TCP (`Transport`), asking the portmapper
  for the port when `port` is 0. `RpcClient.call()` returns the encoded result
  and `RpcClient.null()` calls procedure 0; failures raise `RpcError`. Clients
  are context managers.
- `nfsping.protocols.lookup_null_proc(program, nfs_version)` gives the
  program version and names used for each protocol.
- `nfsping.histogram.LatencyHistogram` records latencies and answers min, max,
  mean and percentile queries, and renders a percentile table.
- `nfsping.output` turns results into any `OutputFormat`.
- `nfsping.targets.TargetList` resolves names into targets;
  `nfsping.filehandle.parse_fh` adds a file handle described by a JSON object
  (`ip`, `host`, `path`, `filehandle` in hex) to its target.
- `nfsping.nfserr` names NFSv3 status codes, and `nfsping.xdr` holds the
  `Packer` and `Unpacker` used to encode RPC messages.

## What it does not do

Only NULL procedures are pinged (plus the mount export request in `nfsup`).
The package does not mount file systems, list exports or directories, read
files, report disk usage or manage locks; file handles can be parsed and
stored but nothing in the package sends requests with them. Only IPv4 is
supported.