# fuffa

Building blocks for web fuzzing: inputs read from wordlists or taken from
the output of shell commands, combined in `clusterbomb`, `pitchfork` or
`sniper` mode; an HTTP runner that fills the inputs into a request template
and measures the response; matchers and filters that decide which responses
matter; scraper rules that extract data from responses; and console output
and report files for the findings.

## Modules

| Module | Contents |
| --- | --- |
| `fuffa.models` | dataclasses `Request`, `Response`, `Result`, `InputProviderConfig`, `Config` |
| `fuffa.filters` | `StatusFilter`, `SizeFilter`, `WordFilter`, `LineFilter`, `RegexpFilter`, `TimeFilter`, `new_filter`, `MatcherManager`, `FilterError` |
| `fuffa.wordlist` | `WordlistInput` and the helpers `strip_comments`, `has_valid_extension`, `remove_extension`, `replace_extension` |
| `fuffa.command` | `CommandInput`: each value is the stdout of a shell command |
| `fuffa.providers` | `MainInputProvider`, `new_input_provider`, `encode_chain`, `InputError` |
| `fuffa.runner` | `SimpleRunner` and `replace_keyword_in_url` |
| `fuffa.scraper` | `ScraperRule`, `ScraperGroup`, `Scraper`, `from_dir` |
| `fuffa.stdout` | `StdOutput` (banner, progress line, results, saving files) and `Progress` |
| `fuffa.reports` | `write_json`, `write_ejson`, `write_html`, `write_markdown`, `write_csv`, `to_csv_row`, `format_duration` |
| `fuffa.audit` | `AuditLogger`: one JSON record per line |
| `fuffa.interactive` | `InteractiveHandler` and `handle` for commands typed while a job runs |

## Matchers and filters

A filter is created from a name and an option string. Numbers and
`min-max` ranges are separated by commas:

```python
from fuffa.filters import FilterError, MatcherManager, new_filter

status = new_filter("status", "200,301,400-410")
status.spec()       # "200,301,400-410"
status.describe()   # "Response status: 200,301,400-410"

try:
    new_filter("size", "invalid")
except FilterError as exc:
    print(exc)
```

The names are `status`, `size`, `word`, `line`, `regexp` and `time`.
`status` also accepts `all`; `time` takes `>N` or `<N` in milliseconds.
Each filter's `filter(response)` returns True when the response falls in
its ranges (or matches its pattern). In a `regexp` filter, input keywords
inside the pattern are replaced by the escaped input values of the request.

`MatcherManager` stores matchers, global filters and per-domain filters.
Adding a filter whose name already exists appends to it unless `replace`
is true; an invalid option raises `FilterError`:

```python
manager = MatcherManager()
manager.add_filter("size", "0", False)
manager.add_filter("size", "1234", False)   # size filter is now 0,1234
manager.add_filter("size", "42", True)      # size filter is now 42
manager.add_matcher("status", "200-299")
manager.add_per_domain_filter("example.com", "word", "12")
manager.filters_for_domain("example.com")
manager.remove_filter("size")
```

## Inputs

`WordlistInput(keyword, path, config)` reads a file (or stdin for `-`).
Blank lines and lines starting with `#` are skipped, text after ` #` is
dropped, and duplicate words are kept once. `Config.wordlist_limit` caps
the number of lines read. With `Config.extensions` set and the keyword
`FUZZ`, each word is also added with its extension replaced; with
`Config.dirsearch_compat`, `%EXT%` in a line is replaced by each extension
instead.

```python
from fuffa.wordlist import replace_extension, strip_comments

strip_comments("admin # the panel")     # "admin"
strip_comments("# only a comment")      # ""
replace_extension("index.html", "php")  # "index.php"
replace_extension("backup", "zip")      # "backup.zip"
```

`CommandInput` runs `Config.input_shell` (or `/bin/sh -c`, `cmd.exe /C` on
Windows) for each of `Config.input_num` positions, with the position in the
`FFUF_NUM` environment variable.

`new_input_provider(config)` builds a `MainInputProvider` from
`config.input_providers` and raises `InputError` listing every problem.
Iterating over it yields one keyword-to-bytes map per combination:

```python
from fuffa.models import Config, InputProviderConfig
from fuffa.providers import new_input_provider

config = Config(
    url="http://localhost:8000/FUZZ",
    input_mode="clusterbomb",
    input_providers=[InputProviderConfig(keyword="FUZZ", value="words.txt")],
)
inputs = new_input_provider(config)
for values in inputs:
    print(values["FUZZ"])
```

An `InputProviderConfig.encoders` string such as `"urlencode b64encode"`
applies those encoders to that keyword's values in order; the available
names are the keys accepted by `encode_chain`, among them `b64encode`,
`b64decode`, `hexencode`, `hexdecode`, `htmlescape`, `htmlunescape`,
`jsonescape`, `jsonunescape`, `urlencode`, `urlencodeall`, `urldecode`,
`lower`, `upper`, `md5`, `sha1`, `sha224`, `sha256`, `sha384` and `sha512`.

## Sending requests

```python
from fuffa.models import Request
from fuffa.runner import SimpleRunner

runner = SimpleRunner(config, replay=False)
template = Request(method="GET", url=config.url)
request = runner.prepare({"FUZZ": b"admin"}, template)
response = runner.execute(request)
print(response.status_code, response.content_length, response.duration)
```

`execute` sets a default User-Agent, follows redirects only when
`Config.follow_redirects` is set, decodes gzip, deflate and brotli bodies,
skips bodies announced larger than 5 MiB or when `Config.ignore_body` is
set, and counts words and lines. `dump` returns the request as raw bytes.
Transport failures are raised as `requests` exceptions.

## Scrapers

A scraper group is a JSON file:

```json
{"groupname": "titles", "active": true,
 "rules": [{"name": "title", "rule": "title", "type": "query", "target": "body"}]}
```

`type` is `regexp` or `query` (a CSS selector), `target` is `body`,
`headers` or anything else for both. `from_dir(dirname, "all")` loads the
active groups of a directory and returns `(scraper, errors)`;
`Scraper.execute(response, matched)` returns a list of `ScraperResult`.

## Output and reports

`StdOutput(config)` prints the banner, progress and messages to stderr and
results to stdout, colored by status code. `result(response)` records a
response and prints it; `cycle()` moves the current job's results into the
collected ones. `save_file(filename, fmt)` writes `json`, `ejson`, `html`,
`md`, `csv` or `ecsv`, or with `all` every format with its suffix appended.
`finalize()` writes `Config.output_file` in `Config.output_format`.
With `Config.output_directory` set, each request and response pair is
saved there under the MD5 of its contents.

`AuditLogger(filename)` appends one `{"Type": ..., "Data": ...}` line per
`write(obj)` and works as a context manager.

## Interactive commands

`InteractiveHandler(job).handle_input(line)` understands an empty line
(pause or resume), `help`, `resume`, `restart`, `show`, `savejson`,
`fc`/`afc`, `fl`/`afl`, `fw`/`afw`, `fs`/`afs`, `ft`/`aft` (a value of
`none` removes the filter), `queueshow`, `queuedel`, `queueskip` and
`rate`. `handle(job)` reads such lines from the controlling terminal.

## What the package does not do

There is no command-line program and no job runner: nothing here parses
command-line options, runs requests on several threads, applies
`Config.rate`, `Config.delay` or `Config.threads`, performs
auto-calibration, or keeps a queue of jobs. The interactive handler needs
a job object supplied by the caller, with `config`, `output`,
`rate.change_rate()`, `pause()`, `resume()`, `reset()`, `skip_queue()`,
`queued_jobs()` and `delete_queue_item()`. Deciding whether a response
passes the matchers and filters of a `MatcherManager` is likewise left to
the caller.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.