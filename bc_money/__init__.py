"""Top-level package for bc_money.

The primary modules are:

* ``metrics`` – the financial metrics engine (aggregation, budgets, income,
  goal projections, category breakdown)
* ``records`` – record dataclasses and transaction DataFrame normalisation
* ``db`` – sqlite record store
* ``reports`` – dashboard and monthly report bundles, CSV export
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run bc_money/dashboard.py
```

The dashboard is not imported here so the engine can be used without
Streamlit being loaded.
"""

from . import metrics  # noqa: F401  # re-exported for convenience
from . import records  # noqa: F401  # re-exported for convenience
from . import reports  # noqa: F401  # re-exported for convenience

__all__ = ["metrics", "records", "reports"]
