"""
Association rule mining over discretized components.

Each record becomes a transaction of items such as ``PC1=high``. Frequent
itemsets are found with Apriori and rules are generated from them with
support, confidence and lift. Both thresholds are inclusive.
"""

import logging
import pandas as pd
from typing import FrozenSet, List, Optional, Tuple
from mlxtend.preprocessing import TransactionEncoder
from mlxtend.frequent_patterns import apriori
from mlxtend.frequent_patterns import association_rules as mlxtend_rules

from heartrisk.errors import NoFrequentItemsetsError

logger = logging.getLogger(__name__)

ITEM_SEPARATOR = '='

RULE_COLUMNS = [
    'antecedents', 'consequents', 'antecedent_support', 'consequent_support',
    'support', 'confidence', 'lift'
]


def item_name(column: str, value) -> str:
    """Item label for one (column, bin) pair, e.g. 'PC1=high'."""
    return f"{column}{ITEM_SEPARATOR}{value}"


def to_transactions(discrete: pd.DataFrame) -> List[FrozenSet[str]]:
    """
    Convert a discretized table into one transaction per row.

    Args:
        discrete: DiscretizedComponentTable

    Returns:
        List of transactions (sets of (column, bin) items)
    """
    columns = list(discrete.columns)
    return [
        frozenset(item_name(column, value) for column, value in zip(columns, row))
        for row in discrete.itertuples(index=False, name=None)
    ]


def encode_transactions(transactions: List[FrozenSet[str]]) -> pd.DataFrame:
    """
    One-hot encode transactions.

    Args:
        transactions: List of transactions

    Returns:
        Boolean DataFrame with one column per item, sorted by item name
    """
    rows = [sorted(t) for t in transactions]
    encoder = TransactionEncoder()
    matrix = encoder.fit(rows).transform(rows)
    return pd.DataFrame(matrix, columns=encoder.columns_)


def frequent_itemsets(onehot: pd.DataFrame,
                      min_support: float = 0.1,
                      max_len: Optional[int] = None) -> pd.DataFrame:
    """
    Find all itemsets whose support meets min_support (Apriori).

    Args:
        onehot: Boolean item matrix (transactions x items)
        min_support: Minimum fraction of transactions containing an itemset
        max_len: Largest itemset size to search, None for no limit

    Returns:
        DataFrame with 'itemsets' (frozensets of items), 'support' and
        'length' columns, by length then support descending
    """
    if len(onehot) == 0:
        raise NoFrequentItemsetsError("No transactions to mine")

    itemsets = apriori(onehot, min_support=min_support, use_colnames=True, max_len=max_len)

    if itemsets.empty:
        raise NoFrequentItemsetsError(
            f"No single item reaches min_support={min_support} "
            f"(highest support {onehot.mean(axis=0).max():.3f})"
        )

    itemsets['length'] = itemsets['itemsets'].apply(len)
    itemsets = itemsets[['itemsets', 'support', 'length']]
    itemsets = itemsets.sort_values(['length', 'support'], ascending=[True, False], kind='stable')

    logger.info(f"Found {len(itemsets)} frequent itemsets with min_support={min_support}")
    return itemsets.reset_index(drop=True)


def association_rules(itemsets: pd.DataFrame, min_confidence: float = 0.8) -> pd.DataFrame:
    """
    Generate rules from frequent itemsets.

    Every non-empty proper subset of an itemset is tried as the antecedent,
    with the rest as the consequent.

    Args:
        itemsets: Result of frequent_itemsets
        min_confidence: Minimum confidence of a reported rule

    Returns:
        DataFrame of rules sorted by lift and confidence, descending
    """
    rules = mlxtend_rules(itemsets, metric='confidence', min_threshold=min_confidence)
    rules = rules.rename(columns={
        'antecedent support': 'antecedent_support',
        'consequent support': 'consequent_support'
    })
    rules = rules.reindex(columns=RULE_COLUMNS)
    if not rules.empty:
        rules = rules.sort_values(['lift', 'confidence'], ascending=False, kind='stable')

    logger.info(f"Generated {len(rules)} rules with min_confidence={min_confidence}")
    return rules.reset_index(drop=True)


def mine_rules(discrete: pd.DataFrame,
               min_support: float = 0.1,
               min_confidence: float = 0.8,
               max_len: Optional[int] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Mine frequent itemsets and rules from a discretized table.

    Args:
        discrete: DiscretizedComponentTable
        min_support: Minimum itemset support
        min_confidence: Minimum rule confidence
        max_len: Largest itemset size, None for no limit

    Returns:
        Tuple of (itemsets, rules)
    """
    onehot = encode_transactions(to_transactions(discrete))
    itemsets = frequent_itemsets(onehot, min_support, max_len)
    rules = association_rules(itemsets, min_confidence)
    return itemsets, rules


def format_rule(rule: pd.Series) -> str:
    """Readable form of one rule row, e.g. '{PC1=high} => {PC2=high}'."""
    lhs = ', '.join(sorted(rule['antecedents']))
    rhs = ', '.join(sorted(rule['consequents']))
    return (f"{{{lhs}}} => {{{rhs}}} "
            f"(support={rule['support']:.3f}, confidence={rule['confidence']:.3f}, "
            f"lift={rule['lift']:.3f})")
