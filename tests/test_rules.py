"""
Tests for the association rule module.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from heartrisk.math.rules import (
    item_name, to_transactions, encode_transactions, frequent_itemsets,
    association_rules, mine_rules, format_rule, RULE_COLUMNS
)
from heartrisk.math.discretize import discretize_components
from heartrisk.errors import NoFrequentItemsetsError


@pytest.fixture
def small_table():
    """
    Six records over two columns.

    A=low in 3 rows, A=high in 2, A=medium in 1; B low/medium/high in 2 each.
    A=low co-occurs with B=low twice; A=high always with B=high.
    """
    return pd.DataFrame({
        'A': ['low', 'low', 'low', 'high', 'high', 'medium'],
        'B': ['low', 'low', 'medium', 'high', 'high', 'medium'],
    })


def itemset_support(itemsets, *items):
    match = itemsets[itemsets['itemsets'] == frozenset(items)]
    assert len(match) == 1
    return match['support'].iloc[0]


class TestTransactions:
    """Tests for building and encoding transactions."""

    def test_item_names(self):
        """Test item labels."""
        assert item_name('PC1', 'high') == 'PC1=high'

    def test_to_transactions(self, small_table):
        """Test one transaction per row holding one item per column."""
        transactions = to_transactions(small_table)

        assert len(transactions) == 6
        assert transactions[0] == frozenset({'A=low', 'B=low'})
        assert transactions[3] == frozenset({'A=high', 'B=high'})

    def test_encode_transactions(self, small_table):
        """Test the one-hot item matrix."""
        onehot = encode_transactions(to_transactions(small_table))

        assert onehot.shape == (6, 6)
        assert list(onehot.columns) == sorted(onehot.columns)
        assert onehot['A=low'].tolist() == [True, True, True, False, False, False]
        assert (onehot.sum(axis=1) == 2).all()


class TestFrequentItemsets:
    """Tests for the level-wise itemset search."""

    def test_supports(self, small_table):
        """Test which itemsets are frequent and their supports."""
        onehot = encode_transactions(to_transactions(small_table))

        itemsets = frequent_itemsets(onehot, min_support=0.3)

        assert len(itemsets) == 7
        assert itemset_support(itemsets, 'A=low') == pytest.approx(0.5)
        assert itemset_support(itemsets, 'B=low') == pytest.approx(2 / 6)
        assert itemset_support(itemsets, 'A=low', 'B=low') == pytest.approx(2 / 6)
        assert itemset_support(itemsets, 'A=high', 'B=high') == pytest.approx(2 / 6)
        # Below the threshold
        assert frozenset({'A=medium'}) not in set(itemsets['itemsets'])
        assert frozenset({'A=low', 'B=medium'}) not in set(itemsets['itemsets'])

    def test_support_is_inclusive(self, small_table):
        """Test that an itemset exactly at min_support is kept."""
        onehot = encode_transactions(to_transactions(small_table))

        itemsets = frequent_itemsets(onehot, min_support=2 / 6)

        assert frozenset({'B=low'}) in set(itemsets['itemsets'])

    def test_three_levels(self):
        """Test that the search continues while levels are non-empty."""
        table = pd.DataFrame({
            'A': ['low'] * 4 + ['high'] * 2,
            'B': ['low'] * 4 + ['high'] * 2,
            'C': ['low'] * 3 + ['high'] * 3,
        })
        onehot = encode_transactions(to_transactions(table))

        itemsets = frequent_itemsets(onehot, min_support=0.5)

        assert itemsets['length'].max() == 3
        assert itemset_support(itemsets, 'A=low', 'B=low', 'C=low') == pytest.approx(0.5)

    def test_columns_and_order(self, small_table):
        """Test the result layout: by length, then support descending."""
        onehot = encode_transactions(to_transactions(small_table))

        itemsets = frequent_itemsets(onehot, min_support=0.3)

        assert list(itemsets.columns) == ['itemsets', 'support', 'length']
        assert itemsets['length'].is_monotonic_increasing
        singles = itemsets[itemsets['length'] == 1]
        assert singles['support'].is_monotonic_decreasing
        assert singles['itemsets'].iloc[0] == frozenset({'A=low'})

    def test_max_len(self):
        """Test that max_len stops the search."""
        table = pd.DataFrame({
            'A': ['low'] * 4 + ['high'] * 2,
            'B': ['low'] * 4 + ['high'] * 2,
            'C': ['low'] * 3 + ['high'] * 3,
        })
        onehot = encode_transactions(to_transactions(table))

        itemsets = frequent_itemsets(onehot, min_support=0.5, max_len=2)

        assert itemsets['length'].max() == 2

    def test_no_frequent_items(self, small_table):
        """Test that nothing at level one raises NoFrequentItemsetsError."""
        onehot = encode_transactions(to_transactions(small_table))

        with pytest.raises(NoFrequentItemsetsError):
            frequent_itemsets(onehot, min_support=0.9)

    def test_matches_brute_force(self):
        """Test against counting every frequent itemset directly."""
        rng = np.random.RandomState(4)
        scores = pd.DataFrame(rng.normal(size=(60, 4)), columns=['PC1', 'PC2', 'PC3', 'PC4'])
        scores['PC2'] = scores['PC1'] + 0.3 * scores['PC2']
        onehot = encode_transactions(to_transactions(discretize_components(scores)))

        itemsets = frequent_itemsets(onehot, min_support=0.1)

        for itemset, support in zip(itemsets['itemsets'], itemsets['support']):
            direct = onehot[list(itemset)].all(axis=1).mean()
            assert support == pytest.approx(direct)
            assert support >= 0.1
        # Every frequent pair is found
        items = list(onehot.columns)
        found = set(itemsets['itemsets'])
        for i in range(len(items)):
            for j in range(i + 1, len(items)):
                if onehot[[items[i], items[j]]].all(axis=1).mean() >= 0.1:
                    assert frozenset({items[i], items[j]}) in found


class TestAssociationRules:
    """Tests for rule generation."""

    def test_rules(self, small_table):
        """Test the rules, their metrics and their order."""
        itemsets, rules = mine_rules(small_table, min_support=0.3, min_confidence=0.6)

        assert len(rules) == 4

        top = rules.iloc[0]
        assert top['lift'] == pytest.approx(3.0)
        assert top['confidence'] == pytest.approx(1.0)

        rule = rules[(rules['antecedents'] == frozenset({'A=low'}))].iloc[0]
        assert rule['consequents'] == frozenset({'B=low'})
        assert rule['confidence'] == pytest.approx(2 / 3)
        assert rule['lift'] == pytest.approx(2.0)

        # Equal lift is ordered by confidence
        lift_two = rules[np.isclose(rules['lift'], 2.0)]
        assert lift_two['confidence'].tolist() == pytest.approx([1.0, 2 / 3])

    def test_confidence_threshold(self, small_table):
        """Test that rules below min_confidence are dropped."""
        _, rules = mine_rules(small_table, min_support=0.3, min_confidence=0.9)

        assert len(rules) == 3
        assert (rules['confidence'] >= 0.9).all()

    def test_rule_columns(self, small_table):
        """Test that rules carry exactly the reported metric columns."""
        _, rules = mine_rules(small_table, min_support=0.3, min_confidence=0.6)

        assert list(rules.columns) == RULE_COLUMNS
        assert list(rules.index) == list(range(len(rules)))

    def test_confidence_is_inclusive(self, small_table):
        """Test that a rule exactly at min_confidence is kept."""
        _, rules = mine_rules(small_table, min_support=0.3, min_confidence=2 / 3)

        assert frozenset({'A=low'}) in set(rules['antecedents'])
        assert len(rules) == 4

    def test_confidence_soundness(self):
        """Test confidence = support(A u C) / support(A) for every rule."""
        rng = np.random.RandomState(8)
        scores = pd.DataFrame(rng.normal(size=(90, 4)), columns=['PC1', 'PC2', 'PC3', 'PC4'])
        scores['PC3'] = scores['PC1'] - 0.5 * scores['PC3']
        discrete = discretize_components(scores)
        onehot = encode_transactions(to_transactions(discrete))

        itemsets, rules = mine_rules(discrete, min_support=0.05, min_confidence=0.3)

        assert len(rules) > 0
        for _, rule in rules.iterrows():
            both = onehot[list(rule['antecedents'] | rule['consequents'])].all(axis=1).mean()
            lhs = onehot[list(rule['antecedents'])].all(axis=1).mean()
            rhs = onehot[list(rule['consequents'])].all(axis=1).mean()
            assert rule['support'] == pytest.approx(both)
            assert rule['confidence'] == pytest.approx(both / lhs)
            assert rule['lift'] == pytest.approx(both / lhs / rhs)
            assert not (rule['antecedents'] & rule['consequents'])

    def test_no_rules(self, small_table):
        """Test that frequent items without pairs give an empty rule table."""
        itemsets = pd.DataFrame({
            'itemsets': [frozenset({'A=low'})],
            'support': [0.5],
            'length': [1]
        })

        rules = association_rules(itemsets, min_confidence=0.5)

        assert rules.empty
        assert 'confidence' in rules.columns

    def test_format_rule(self, small_table):
        """Test the readable rule form."""
        _, rules = mine_rules(small_table, min_support=0.3, min_confidence=0.6)

        text = format_rule(rules.iloc[0])

        assert '=>' in text
        assert 'lift=3.000' in text
