import pandas as pd
import numpy as np
import matplotlib.pyplot as plt

# ---- 1. Load data written by `python3 -m art_auction_ai.cli` ----
csv_path = "art_auction_ai/results/decision_times.csv"   # <- change to your path
df = pd.read_csv(csv_path)

# Expecting: 'difficulty', 'decision_type', 'duration_ms', 'fallback_used'

# ---- 2. Per-difficulty histograms of decision time ----
difficulties = [d for d in ["easy", "medium", "hard"] if d in set(df['difficulty'])]
n = len(difficulties)

# common bin edges so histos are comparable
bins = np.linspace(0, df['duration_ms'].quantile(0.99), 30)

fig, axes = plt.subplots(1, n, figsize=(5 * n, 4), sharey=True)

# axes might be a single Axes if only one difficulty
axes = np.atleast_1d(axes)

for ax, difficulty in zip(axes, difficulties):
    subset = df[df['difficulty'] == difficulty]
    ax.hist(subset['duration_ms'], bins=bins, rwidth=0.8)
    ax.axvline(subset['duration_ms'].quantile(0.95), linestyle='--')  # p95 line
    fallback_rate = subset['fallback_used'].mean() * 100
    ax.set_title(f"{difficulty} ({len(subset)} decisions, {fallback_rate:.1f}% fallback)")
    ax.set_xlabel("decision time (ms)")
    ax.grid(True, axis='y', linestyle=':', alpha=0.5)

axes[0].set_ylabel("Count")

plt.suptitle("Decision time by difficulty\n(dashed = p95)", y=1.03)
plt.tight_layout()
plt.show()

# ---- 3. Mean time per decision type ----
means = df.pivot_table(index='decision_type', columns='difficulty',
                       values='duration_ms', aggfunc='mean')
means = means[[d for d in difficulties if d in means.columns]]

ax = means.plot(kind='bar', figsize=(10, 4), rot=0)
ax.set_ylabel("mean decision time (ms)")
ax.set_title("Mean decision time by type")
ax.grid(True, axis='y', linestyle=':', alpha=0.5)
plt.tight_layout()
plt.show()
